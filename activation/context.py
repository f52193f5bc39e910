"""Capability query context: run-scoped state for condition checks.

Holds capability arities (presence is arity >= 1), committed component
identities, flat properties and the environment kind. Growth is monotonic:
arities only increase and committed components are never removed. Only the
resolver calls `commit`; conditions use the read-only query methods.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

NO_ENVIRONMENT = "none"


class CapabilityQueryContext:
    __slots__ = ("_arity", "_components", "_properties", "_environment")

    def __init__(
        self,
        capabilities: Mapping[str, int] | Iterable[str] | None = None,
        components: Iterable[str] | None = None,
        properties: Mapping[str, Any] | None = None,
        environment: str | None = None,
    ) -> None:
        self._arity: Dict[str, int] = {}
        if isinstance(capabilities, Mapping):
            for name, count in capabilities.items():
                if int(count) < 0:
                    raise ValueError(
                        f"capability '{name}' arity must be >= 0"
                    )
                if count:
                    self._arity[name] = int(count)
        elif capabilities is not None:
            for name in capabilities:
                self._arity[name] = self._arity.get(name, 0) + 1
        self._components: Dict[str, None] = dict.fromkeys(components or ())
        self._properties: Dict[str, Any] = dict(properties or {})
        self._environment = environment or NO_ENVIRONMENT

    # --- queries ---------------------------------------------------------
    def has_capability(self, name: str) -> bool:
        return self._arity.get(name, 0) > 0

    def arity(self, name: str) -> int:
        return self._arity.get(name, 0)

    def is_committed(self, component: str) -> bool:
        return component in self._components

    def has_property(self, key: str) -> bool:
        return key in self._properties

    def get_property(self, key: str, default: Any = None) -> Any:
        return self._properties.get(key, default)

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def capabilities(self) -> Dict[str, int]:
        return dict(self._arity)

    @property
    def components(self) -> tuple[str, ...]:
        return tuple(self._components)

    @property
    def properties(self) -> Dict[str, Any]:
        return dict(self._properties)

    # --- growth ----------------------------------------------------------
    def commit(
        self,
        component: str,
        provides: Iterable[str] = (),
        components: Iterable[str] = (),
    ) -> None:
        """Record a committed module: its identity, extra components, and
        one more provider for each capability it declares."""
        self._components.setdefault(component, None)
        for extra in components:
            self._components.setdefault(extra, None)
        for name in provides:
            self._arity[name] = self._arity.get(name, 0) + 1

    def copy(self) -> "CapabilityQueryContext":
        clone = CapabilityQueryContext(environment=self._environment)
        clone._arity = dict(self._arity)
        clone._components = dict(self._components)
        clone._properties = dict(self._properties)
        return clone

    def as_dict(self) -> Dict[str, Any]:
        return {
            "environment": self._environment,
            "capabilities": dict(sorted(self._arity.items())),
            "components": list(self._components),
            "properties": dict(sorted(self._properties.items())),
        }

    def __repr__(self) -> str:
        return (
            f"CapabilityQueryContext(capabilities={len(self._arity)}, "
            f"components={len(self._components)}, "
            f"properties={len(self._properties)}, "
            f"environment={self._environment!r})"
        )


__all__ = ["CapabilityQueryContext", "NO_ENVIRONMENT"]
