"""Host environment probe: seeds the capability query context.

Everything the resolver knows about the host is captured here, once, before
the run: explicit capability arities, capabilities proven by an importable
python module, user-declared components, properties and the environment
kind. User components are seeded before any module is evaluated so that
OnComponentAbsent conditions back off in favour of them.
"""
from __future__ import annotations

import importlib.util
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping

from activation.config import AggregatedConfig, EXCLUDE_PROPERTY
from activation.context import CapabilityQueryContext

logger = logging.getLogger("activation.host")


def module_importable(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


class HostProbe:
    def __init__(
        self,
        capabilities: Mapping[str, int] | None = None,
        probe_imports: Mapping[str, str] | None = None,
        components: Iterable[str] = (),
        properties: Mapping[str, Any] | None = None,
        environment: str | None = None,
        finder: Callable[[str], bool] = module_importable,
    ) -> None:
        self._capabilities = dict(capabilities or {})
        self._probe_imports = dict(probe_imports or {})
        self._components = list(components)
        self._properties = dict(properties or {})
        self._environment = environment
        self._finder = finder

    @classmethod
    def from_config(cls, cfg: AggregatedConfig, **kwargs) -> "HostProbe":
        return cls(
            capabilities=cfg.host.capabilities,
            probe_imports=cfg.host.probe_imports,
            components=cfg.host.components,
            properties=cfg.flat_properties(),
            environment=cfg.resolver.environment,
            **kwargs,
        )

    def probe_capabilities(self) -> Dict[str, int]:
        """Explicit arities win; an importable probe module counts as one."""
        found = dict(self._capabilities)
        for capability, module in sorted(self._probe_imports.items()):
            if capability in found:
                continue
            if self._finder(module):
                found[capability] = 1
            else:
                logger.debug(
                    "capability %s not present (module %s not importable)",
                    capability,
                    module,
                )
        return found

    def property_exclusions(self) -> List[str]:
        """Module names listed in the `activation.exclude` property."""
        raw = self._properties.get(EXCLUDE_PROPERTY)
        if raw is None:
            return []
        if isinstance(raw, str):
            raw = raw.split(",")
        return [str(n).strip() for n in raw if str(n).strip()]

    def seed(self) -> CapabilityQueryContext:
        ctx = CapabilityQueryContext(
            capabilities=self.probe_capabilities(),
            components=self._components,
            properties=self._properties,
            environment=self._environment,
        )
        logger.debug("seeded %r", ctx)
        return ctx


__all__ = ["HostProbe", "module_importable"]
