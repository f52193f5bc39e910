"""HTTP diagnostics for activation resolution."""
