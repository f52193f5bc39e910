"""Central error taxonomy and structural resolution errors.

Only structural problems are exceptions: a cyclic ordering graph, an
exclusion naming a module the catalog does not know, a malformed catalog
declaration. A module whose conditions do not hold is recorded in the
activation report and never raised.
"""
from __future__ import annotations

from typing import Iterable, Tuple

_ALLOWED_ERROR_TYPES = {
    # catalog.load
    "catalog-invalid",
    "duplicate-module",
    "malformed-condition",
    # resolution
    "ordering-cycle",
    "unknown-exclusion",
    # config
    "config-invalid",
    "config-out-of-range",
    # infra
    "event-handler-error",
}


def validate_error_type(code: str) -> str:
    assert (
        code in _ALLOWED_ERROR_TYPES
    ), f"Unknown error_type '{code}' (not in taxonomy)"
    return code


class ActivationError(Exception):
    """Base for every structural failure of a resolution run."""

    error_type = "catalog-invalid"


class CatalogError(ActivationError):
    """Raised when the module catalog cannot be loaded or is inconsistent.

    Typical reasons: unreadable manifest, duplicate module identity.
    """

    def __init__(self, message: str, error_type: str = "catalog-invalid"):
        super().__init__(message)
        self.error_type = validate_error_type(error_type)


class MalformedConditionError(CatalogError):
    """Raised when a condition declaration is missing a required field."""

    def __init__(self, message: str, module: str | None = None):
        if module:
            message = f"module '{module}': {message}"
        super().__init__(message, error_type="malformed-condition")
        self.module = module


class OrderingCycleError(ActivationError):
    """Ordering constraints form a cycle; nothing is evaluated."""

    error_type = "ordering-cycle"

    def __init__(self, cycle: Iterable[str]):
        self.cycle: Tuple[str, ...] = tuple(cycle)
        super().__init__(
            "ordering constraints form a cycle: "
            + " -> ".join(self.cycle + self.cycle[:1])
        )


class UnknownExclusionError(ActivationError):
    """An excluded identity is not present in the catalog."""

    error_type = "unknown-exclusion"

    def __init__(self, names: Iterable[str]):
        self.names: Tuple[str, ...] = tuple(names)
        super().__init__(
            "excluded modules not present in catalog: "
            + ", ".join(self.names)
        )


def map_exception(e: Exception) -> str:
    code = getattr(e, "error_type", None)
    if isinstance(code, str) and code in _ALLOWED_ERROR_TYPES:
        return code
    name = e.__class__.__name__.lower()
    if "config" in name:
        return "config-invalid"
    return "catalog-invalid"


__all__ = [
    "validate_error_type",
    "map_exception",
    "ActivationError",
    "CatalogError",
    "MalformedConditionError",
    "OrderingCycleError",
    "UnknownExclusionError",
]
