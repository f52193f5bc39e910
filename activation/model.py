"""Module declarations (catalog entries)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Tuple

from activation.conditions import Condition, condition_to_dict
from activation.errors import CatalogError, MalformedConditionError


@dataclass(frozen=True, slots=True)
class Module:
    """Candidate configuration module.

    name: unique identity; also the component id committed on activation.
    conditions: checked in declared order, all must hold.
    before / after: ordering constraints by identity.
    priority: tie-break among unconstrained modules, lower runs earlier.
    provides: capabilities registered on activation (arity +1 each).
    components: extra component ids committed on activation.
    """

    name: str
    conditions: Tuple[Condition, ...] = ()
    before: FrozenSet[str] = frozenset()
    after: FrozenSet[str] = frozenset()
    priority: int = 0
    provides: Tuple[str, ...] = ()
    components: Tuple[str, ...] = ()
    description: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise CatalogError("module name cannot be empty")
        # accept any iterables from callers, store immutable forms
        object.__setattr__(self, "conditions", tuple(self.conditions))
        object.__setattr__(self, "before", frozenset(self.before))
        object.__setattr__(self, "after", frozenset(self.after))
        object.__setattr__(self, "provides", tuple(self.provides))
        object.__setattr__(self, "components", tuple(self.components))
        for cond in self.conditions:
            if not isinstance(cond, Condition):
                raise MalformedConditionError(
                    f"not a condition: {cond!r}", module=self.name
                )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "priority": self.priority,
            "before": sorted(self.before),
            "after": sorted(self.after),
            "provides": list(self.provides),
            "components": list(self.components),
            "conditions": [condition_to_dict(c) for c in self.conditions],
            "description": self.description,
        }


def index_modules(modules: Iterable[Module]) -> Dict[str, Module]:
    """Index by name preserving declaration order; duplicates are an error."""
    index: Dict[str, Module] = {}
    for module in modules:
        if module.name in index:
            raise CatalogError(
                f"Duplicate module id in catalog: {module.name}",
                error_type="duplicate-module",
            )
        index[module.name] = module
    return index


__all__ = ["Module", "index_modules"]
