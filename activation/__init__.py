"""Conditional module activation resolver.

Public API:
    Module, conditions (OnCapabilityPresent, ...), CapabilityQueryContext
    resolve_order / ActivationResolver / resolve
    ActivationReport, Verdict, VerdictKind
    errors: OrderingCycleError, UnknownExclusionError, MalformedConditionError
"""
from .conditions import (  # noqa: F401
    ConditionKind,
    OnCapabilityAbsent,
    OnCapabilityPresent,
    OnComponentAbsent,
    OnComponentPresent,
    OnEnvironmentKind,
    OnPropertyEquals,
    OnSingleCandidate,
    evaluate,
    evaluate_all,
)
from .context import CapabilityQueryContext  # noqa: F401
from .errors import (  # noqa: F401
    ActivationError,
    CatalogError,
    MalformedConditionError,
    OrderingCycleError,
    UnknownExclusionError,
)
from .model import Module  # noqa: F401
from .ordering import build_ordering_graph, resolve_order  # noqa: F401
from .report import ActivationReport, Verdict, VerdictKind  # noqa: F401
from .resolver import (  # noqa: F401
    ActivationResolver,
    Resolution,
    ResolverSettings,
    resolve,
)

__all__ = [
    "ConditionKind",
    "OnCapabilityAbsent",
    "OnCapabilityPresent",
    "OnComponentAbsent",
    "OnComponentPresent",
    "OnEnvironmentKind",
    "OnPropertyEquals",
    "OnSingleCandidate",
    "evaluate",
    "evaluate_all",
    "CapabilityQueryContext",
    "ActivationError",
    "CatalogError",
    "MalformedConditionError",
    "OrderingCycleError",
    "UnknownExclusionError",
    "Module",
    "build_ordering_graph",
    "resolve_order",
    "ActivationReport",
    "Verdict",
    "VerdictKind",
    "ActivationResolver",
    "Resolution",
    "ResolverSettings",
    "resolve",
]
