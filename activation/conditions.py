"""Condition variants and their evaluator.

Each condition is an immutable tagged value (`kind`) checked by one
evaluation function looked up in `_EVALUATORS`. Evaluation only reads the
`CapabilityQueryContext`; calling it any number of times yields the same
outcome for the same context.

Variants:
    OnCapabilityPresent(name) / OnCapabilityAbsent(name)
    OnComponentPresent(component) / OnComponentAbsent(component)
    OnPropertyEquals(key, expected, default=None, match_if_missing=False)
    OnSingleCandidate(capability)
    OnEnvironmentKind(kind)
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Iterable, Tuple

from activation.context import CapabilityQueryContext
from activation.errors import MalformedConditionError

ALL_MATCHED = "all conditions matched"
NO_CONDITIONS = "no conditions"


class ConditionKind(str, Enum):
    CAPABILITY_PRESENT = "on_capability_present"
    CAPABILITY_ABSENT = "on_capability_absent"
    COMPONENT_PRESENT = "on_component_present"
    COMPONENT_ABSENT = "on_component_absent"
    PROPERTY_EQUALS = "on_property_equals"
    SINGLE_CANDIDATE = "on_single_candidate"
    ENVIRONMENT_KIND = "on_environment_kind"


def _require(value: Any, field_name: str, kind: ConditionKind) -> None:
    if not isinstance(value, str) or not value.strip():
        raise MalformedConditionError(
            f"{kind.value} requires a non-empty '{field_name}'"
        )


@dataclass(frozen=True, slots=True)
class Condition:
    kind: ClassVar[ConditionKind]

    def describe(self) -> str:  # pragma: no cover - overridden
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class OnCapabilityPresent(Condition):
    kind: ClassVar[ConditionKind] = ConditionKind.CAPABILITY_PRESENT
    name: str

    def __post_init__(self) -> None:
        _require(self.name, "name", self.kind)

    def describe(self) -> str:
        return f"OnCapabilityPresent({self.name})"


@dataclass(frozen=True, slots=True)
class OnCapabilityAbsent(Condition):
    kind: ClassVar[ConditionKind] = ConditionKind.CAPABILITY_ABSENT
    name: str

    def __post_init__(self) -> None:
        _require(self.name, "name", self.kind)

    def describe(self) -> str:
        return f"OnCapabilityAbsent({self.name})"


@dataclass(frozen=True, slots=True)
class OnComponentPresent(Condition):
    kind: ClassVar[ConditionKind] = ConditionKind.COMPONENT_PRESENT
    component: str

    def __post_init__(self) -> None:
        _require(self.component, "component", self.kind)

    def describe(self) -> str:
        return f"OnComponentPresent({self.component})"


@dataclass(frozen=True, slots=True)
class OnComponentAbsent(Condition):
    """Back-off condition: holds while nobody (user or module) has
    committed the component."""

    kind: ClassVar[ConditionKind] = ConditionKind.COMPONENT_ABSENT
    component: str

    def __post_init__(self) -> None:
        _require(self.component, "component", self.kind)

    def describe(self) -> str:
        return f"OnComponentAbsent({self.component})"


@dataclass(frozen=True, slots=True)
class OnPropertyEquals(Condition):
    """Property equality.

    A missing key matches only when `match_if_missing` is set; otherwise a
    declared `default` stands in for the value, and without one the
    condition fails.
    """

    kind: ClassVar[ConditionKind] = ConditionKind.PROPERTY_EQUALS
    key: str
    expected: Any
    default: Any = None
    match_if_missing: bool = False

    def __post_init__(self) -> None:
        _require(self.key, "key", self.kind)
        if self.expected is None:
            raise MalformedConditionError(
                f"{self.kind.value} '{self.key}' requires an 'expected' value"
            )

    def describe(self) -> str:
        return f"OnPropertyEquals({self.key}={normalize_value(self.expected)})"


@dataclass(frozen=True, slots=True)
class OnSingleCandidate(Condition):
    kind: ClassVar[ConditionKind] = ConditionKind.SINGLE_CANDIDATE
    capability: str

    def __post_init__(self) -> None:
        _require(self.capability, "capability", self.kind)

    def describe(self) -> str:
        return f"OnSingleCandidate({self.capability})"


@dataclass(frozen=True, slots=True)
class OnEnvironmentKind(Condition):
    kind: ClassVar[ConditionKind] = ConditionKind.ENVIRONMENT_KIND
    environment: str

    def __post_init__(self) -> None:
        _require(self.environment, "environment", self.kind)

    def describe(self) -> str:
        return f"OnEnvironmentKind({self.environment})"


@dataclass(frozen=True, slots=True)
class ConditionOutcome:
    condition: str
    matched: bool
    reason: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "condition": self.condition,
            "matched": self.matched,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class ConditionsOutcome:
    """AND over a module's conditions, short-circuited at first failure.

    outcomes holds only the conditions actually evaluated.
    """

    matched: bool
    reason: str
    outcomes: Tuple[ConditionOutcome, ...] = ()


def normalize_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# --- per-variant evaluation ----------------------------------------------

def _capability_present(
    cond: OnCapabilityPresent, ctx: CapabilityQueryContext
) -> Tuple[bool, str]:
    if ctx.has_capability(cond.name):
        return True, f"capability '{cond.name}' present"
    return False, f"capability '{cond.name}' not present"


def _capability_absent(
    cond: OnCapabilityAbsent, ctx: CapabilityQueryContext
) -> Tuple[bool, str]:
    if ctx.has_capability(cond.name):
        return False, f"capability '{cond.name}' present"
    return True, f"capability '{cond.name}' absent"


def _component_present(
    cond: OnComponentPresent, ctx: CapabilityQueryContext
) -> Tuple[bool, str]:
    if ctx.is_committed(cond.component):
        return True, f"component '{cond.component}' committed"
    return False, f"component '{cond.component}' not committed"


def _component_absent(
    cond: OnComponentAbsent, ctx: CapabilityQueryContext
) -> Tuple[bool, str]:
    if ctx.is_committed(cond.component):
        return False, f"component '{cond.component}' already committed"
    return True, f"component '{cond.component}' not committed"


def _property_equals(
    cond: OnPropertyEquals, ctx: CapabilityQueryContext
) -> Tuple[bool, str]:
    expected = normalize_value(cond.expected)
    if ctx.has_property(cond.key):
        actual = normalize_value(ctx.get_property(cond.key))
        source = "value"
    elif cond.match_if_missing:
        return True, f"property '{cond.key}' missing, matched if missing"
    elif cond.default is not None:
        actual = normalize_value(cond.default)
        source = "default"
    else:
        return False, f"property '{cond.key}' missing"
    if actual == expected:
        return True, f"property '{cond.key}' {source} '{actual}' matches"
    return False, (
        f"property '{cond.key}' {source} '{actual}' != expected '{expected}'"
    )


def _single_candidate(
    cond: OnSingleCandidate, ctx: CapabilityQueryContext
) -> Tuple[bool, str]:
    count = ctx.arity(cond.capability)
    if count == 1:
        return True, f"single candidate for '{cond.capability}'"
    if count == 0:
        return False, f"no candidate for '{cond.capability}'"
    return False, f"ambiguous, {count} candidates for '{cond.capability}'"


def _environment_kind(
    cond: OnEnvironmentKind, ctx: CapabilityQueryContext
) -> Tuple[bool, str]:
    if ctx.environment == cond.environment:
        return True, f"environment is '{cond.environment}'"
    return False, (
        f"environment is '{ctx.environment}', required '{cond.environment}'"
    )


_EVALUATORS: Dict[
    ConditionKind, Callable[[Any, CapabilityQueryContext], Tuple[bool, str]]
] = {
    ConditionKind.CAPABILITY_PRESENT: _capability_present,
    ConditionKind.CAPABILITY_ABSENT: _capability_absent,
    ConditionKind.COMPONENT_PRESENT: _component_present,
    ConditionKind.COMPONENT_ABSENT: _component_absent,
    ConditionKind.PROPERTY_EQUALS: _property_equals,
    ConditionKind.SINGLE_CANDIDATE: _single_candidate,
    ConditionKind.ENVIRONMENT_KIND: _environment_kind,
}


def evaluate(
    condition: Condition, context: CapabilityQueryContext
) -> ConditionOutcome:
    matched, reason = _EVALUATORS[condition.kind](condition, context)
    return ConditionOutcome(condition.describe(), matched, reason)


def evaluate_all(
    conditions: Iterable[Condition], context: CapabilityQueryContext
) -> ConditionsOutcome:
    outcomes: list[ConditionOutcome] = []
    for cond in conditions:
        outcome = evaluate(cond, context)
        outcomes.append(outcome)
        if not outcome.matched:
            return ConditionsOutcome(
                False,
                f"{outcome.condition}: {outcome.reason}",
                tuple(outcomes),
            )
    if not outcomes:
        return ConditionsOutcome(True, NO_CONDITIONS)
    return ConditionsOutcome(True, ALL_MATCHED, tuple(outcomes))


# --- declaration parsing --------------------------------------------------

_BY_KIND: Dict[str, type] = {
    ConditionKind.CAPABILITY_PRESENT.value: OnCapabilityPresent,
    ConditionKind.CAPABILITY_ABSENT.value: OnCapabilityAbsent,
    ConditionKind.COMPONENT_PRESENT.value: OnComponentPresent,
    ConditionKind.COMPONENT_ABSENT.value: OnComponentAbsent,
    ConditionKind.PROPERTY_EQUALS.value: OnPropertyEquals,
    ConditionKind.SINGLE_CANDIDATE.value: OnSingleCandidate,
    ConditionKind.ENVIRONMENT_KIND.value: OnEnvironmentKind,
}


def condition_from_dict(data: Dict[str, Any]) -> Condition:
    """Build a condition from a `{kind: ..., <fields>}` mapping.

    Unknown kinds and missing/extra fields raise MalformedConditionError.
    """
    if not isinstance(data, dict):
        raise MalformedConditionError(f"condition must be a mapping: {data!r}")
    params = dict(data)
    kind = params.pop("kind", None)
    if isinstance(kind, ConditionKind):
        kind = kind.value
    cls = _BY_KIND.get(kind) if isinstance(kind, str) else None
    if cls is None:
        raise MalformedConditionError(f"unknown condition kind: {kind!r}")
    try:
        return cls(**params)
    except TypeError as e:
        raise MalformedConditionError(f"{kind}: {e}") from e


def condition_to_dict(cond: Condition) -> Dict[str, Any]:
    data: Dict[str, Any] = {"kind": cond.kind.value}
    for f in fields(cond):
        data[f.name] = getattr(cond, f.name)
    return data


__all__ = [
    "ConditionKind",
    "Condition",
    "OnCapabilityPresent",
    "OnCapabilityAbsent",
    "OnComponentPresent",
    "OnComponentAbsent",
    "OnPropertyEquals",
    "OnSingleCandidate",
    "OnEnvironmentKind",
    "ConditionOutcome",
    "ConditionsOutcome",
    "ALL_MATCHED",
    "NO_CONDITIONS",
    "evaluate",
    "evaluate_all",
    "normalize_value",
    "condition_from_dict",
    "condition_to_dict",
]
