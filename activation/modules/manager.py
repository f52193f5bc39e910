"""ActivationManager: config + catalog + host probe -> one resolution.

Responsibilities:
 - Read resolver settings and exclusions from config
 - Load the module catalog (config.resolver.catalog_dir unless given)
 - Seed the query context from the host probe
 - Resolve once on construction and expose the outcome read-only

Exclusions are the union of caller names, config.resolver.exclude and the
`activation.exclude` property. Unlike enabled-module lists, an excluded
name missing from the catalog is a configuration error, not skipped.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Iterable, List, Sequence

from activation.catalog import load_catalog
from activation.config import AggregatedConfig, get_config
from activation.context import CapabilityQueryContext
from activation.host import HostProbe
from activation.model import Module
from activation.report import ActivationReport, Verdict
from activation.resolver import (
    ActivationResolver,
    Resolution,
    ResolverSettings,
)


def _merge_names(*groups: Iterable[str]) -> List[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for name in group:
            seen.setdefault(name, None)
    return list(seen)


class ActivationManager:
    def __init__(
        self,
        cfg: AggregatedConfig | None = None,
        catalog: Sequence[Module] | None = None,
        exclusions: Iterable[str] = (),
        probe: HostProbe | None = None,
    ) -> None:
        cfg = cfg or get_config()
        if catalog is None:
            catalog = load_catalog(cfg.resolver.catalog_dir)
        probe = probe or HostProbe.from_config(cfg)
        self._config = cfg
        self._exclusions = _merge_names(
            exclusions, cfg.resolver.exclude, probe.property_exclusions()
        )
        resolver = ActivationResolver(
            ResolverSettings(enabled=cfg.resolver.enabled)
        )
        self._resolution: Resolution = resolver.resolve(
            catalog, self._exclusions, probe.seed()
        )

    @property
    def config(self) -> AggregatedConfig:
        return self._config

    @property
    def exclusions(self) -> list[str]:
        return list(self._exclusions)

    @property
    def resolution(self) -> Resolution:
        return self._resolution

    @property
    def report(self) -> ActivationReport:
        return self._resolution.report

    @property
    def context(self) -> CapabilityQueryContext:
        return self._resolution.context

    def is_active(self, name: str) -> bool:
        return name in self.report and self.report.get(name).activated

    def verdict(self, name: str) -> Verdict:
        return self.report.get(name)

    def list_active(self) -> list[str]:
        return self.report.activated_names()

    def activated_modules(self) -> list[Module]:
        return self._resolution.activated_modules()


@lru_cache(maxsize=1)
def get_activation_manager() -> ActivationManager:
    return ActivationManager()


def clear_activation_manager() -> None:
    get_activation_manager.cache_clear()
