"""Activation manager package.

Thin consumer of the resolver: wires config, catalog and host probe
together and keeps the outcome of a single resolution run.
"""
from __future__ import annotations

from .manager import (  # noqa: F401
    ActivationManager,
    get_activation_manager,
    clear_activation_manager,
)

__all__ = [
    "ActivationManager",
    "get_activation_manager",
    "clear_activation_manager",
]
