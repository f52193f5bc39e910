"""Module manifest schema (YAML catalog entries)."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict

from activation.conditions import ConditionKind, condition_from_dict
from activation.errors import MalformedConditionError
from activation.model import Module

# shorthand `- on_capability_present: jdbc` fills this field
_PRIMARY_FIELD = {
    ConditionKind.CAPABILITY_PRESENT.value: "name",
    ConditionKind.CAPABILITY_ABSENT.value: "name",
    ConditionKind.COMPONENT_PRESENT.value: "component",
    ConditionKind.COMPONENT_ABSENT.value: "component",
    ConditionKind.SINGLE_CANDIDATE.value: "capability",
    ConditionKind.ENVIRONMENT_KIND.value: "environment",
}


def expand_condition(raw: Any) -> Dict[str, Any]:
    """Normalize shorthand declarations to `{kind: ..., field: ...}`.

    Accepted forms:
        {kind: on_capability_present, name: jdbc}
        {on_capability_present: jdbc}
        {on_property_equals: {key: a.b, expected: "true"}}
    """
    if not isinstance(raw, dict):
        raise MalformedConditionError(f"condition must be a mapping: {raw!r}")
    if "kind" in raw or len(raw) != 1:
        return dict(raw)
    ((kind, value),) = raw.items()
    if isinstance(value, dict):
        return {"kind": kind, **value}
    primary = _PRIMARY_FIELD.get(kind)
    if primary is None:
        raise MalformedConditionError(
            f"{kind} cannot be declared in shorthand form"
        )
    return {"kind": kind, primary: value}


class ModuleManifest(BaseModel):
    name: str
    description: Optional[str] = None
    priority: int = 0
    before: List[str] = Field(default_factory=list)
    after: List[str] = Field(default_factory=list)
    provides: List[str] = Field(default_factory=list)
    components: List[str] = Field(default_factory=list)
    conditions: List[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, v: str) -> str:  # noqa: D401
        if not v.strip():
            raise ValueError("name cannot be empty")
        return v

    def to_module(self) -> Module:
        conditions = []
        for raw in self.conditions:
            try:
                conditions.append(condition_from_dict(expand_condition(raw)))
            except MalformedConditionError as e:
                raise MalformedConditionError(str(e), module=self.name) from e
        return Module(
            name=self.name,
            conditions=tuple(conditions),
            before=frozenset(self.before),
            after=frozenset(self.after),
            priority=self.priority,
            provides=tuple(self.provides),
            components=tuple(self.components),
            description=self.description,
        )
