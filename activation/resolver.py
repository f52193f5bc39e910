"""Activation resolver: one forward pass over the ordered catalog.

Steps for a run:
 1. validate exclusions against the catalog (UnknownExclusionError)
 2. order the catalog (OrderingCycleError)
 3. for each module in order:
      excluded            -> EXCLUDED, context untouched
      conditions hold     -> ACTIVATED, commit identity/components/provides
      a condition fails   -> CONDITION_FAILED, context untouched

A module only sees what modules ordered before it committed. Structural
errors abort the run before any verdict is produced. The caller's seeded
context is copied, never mutated.
"""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Tuple

from activation.conditions import evaluate_all
from activation.context import CapabilityQueryContext
from activation.errors import (
    ActivationError,
    UnknownExclusionError,
    map_exception,
)
from activation.events import (
    emit,
    ModuleActivated,
    ModuleConditionFailed,
    ModuleExcluded,
    ResolutionCompleted,
    ResolutionFailed,
    ResolutionStarted,
)
from activation.model import Module, index_modules
from activation.ordering import resolve_order
from activation.report import ActivationReport, Verdict, VerdictKind

logger = logging.getLogger("activation.resolver")

EXCLUDED_REASON = "excluded by configuration"
DISABLED_REASON = "auto-activation disabled"


@dataclass(frozen=True, slots=True)
class ResolverSettings:
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class Resolution:
    report: ActivationReport
    context: CapabilityQueryContext
    modules: Tuple[Module, ...]

    @property
    def order(self) -> List[str]:
        return [m.name for m in self.modules]

    def activated_modules(self) -> List[Module]:
        """Activated modules in resolution order (what consumers wire)."""
        return [
            m for m in self.modules if self.report.get(m.name).activated
        ]


def validate_exclusions(
    exclusions: Iterable[str], index: Dict[str, Module]
) -> FrozenSet[str]:
    names = frozenset(exclusions)
    unknown = sorted(n for n in names if n not in index)
    if unknown:
        raise UnknownExclusionError(unknown)
    return names


class ActivationResolver:
    def __init__(self, settings: ResolverSettings | None = None) -> None:
        self.settings = settings or ResolverSettings()

    def resolve(
        self,
        modules: Iterable[Module],
        exclusions: Iterable[str] = (),
        context: CapabilityQueryContext | None = None,
    ) -> Resolution:
        run_id = uuid.uuid4().hex[:12]
        t0 = time.perf_counter()
        try:
            index = index_modules(modules)
            excluded = validate_exclusions(exclusions, index)
            ordered = resolve_order(index.values())
        except ActivationError as e:
            emit(
                ResolutionFailed(
                    run_id=run_id,
                    error_type=map_exception(e),
                    message=str(e),
                )
            )
            raise
        ctx = context.copy() if context is not None else (
            CapabilityQueryContext()
        )
        emit(
            ResolutionStarted(
                run_id=run_id,
                modules=len(ordered),
                exclusions=len(excluded),
                environment=ctx.environment,
            )
        )
        verdicts = [
            self._process(run_id, ordinal, module, excluded, ctx)
            for ordinal, module in enumerate(ordered)
        ]
        report = ActivationReport(verdicts)
        counts = report.counts()
        latency_ms = (time.perf_counter() - t0) * 1000.0
        emit(
            ResolutionCompleted(
                run_id=run_id,
                activated=counts["activated"],
                excluded=counts["excluded"],
                condition_failed=counts["condition_failed"],
                latency_ms=latency_ms,
            )
        )
        logger.info(
            "resolved %d modules: activated=%d excluded=%d "
            "condition_failed=%d (%.2f ms)",
            len(report),
            counts["activated"],
            counts["excluded"],
            counts["condition_failed"],
            latency_ms,
        )
        return Resolution(report=report, context=ctx, modules=tuple(ordered))

    def _process(
        self,
        run_id: str,
        ordinal: int,
        module: Module,
        excluded: FrozenSet[str],
        ctx: CapabilityQueryContext,
    ) -> Verdict:
        if not self.settings.enabled or module.name in excluded:
            reason = (
                DISABLED_REASON if not self.settings.enabled
                else EXCLUDED_REASON
            )
            logger.debug("%s excluded: %s", module.name, reason)
            emit(ModuleExcluded(run_id, module.name, ordinal, reason))
            return Verdict(module.name, ordinal, VerdictKind.EXCLUDED, reason)

        outcome = evaluate_all(module.conditions, ctx)
        if not outcome.matched:
            logger.debug("%s skipped: %s", module.name, outcome.reason)
            emit(
                ModuleConditionFailed(
                    run_id, module.name, ordinal, outcome.reason
                )
            )
            return Verdict(
                module.name,
                ordinal,
                VerdictKind.CONDITION_FAILED,
                outcome.reason,
                outcome.outcomes,
            )

        ctx.commit(module.name, module.provides, module.components)
        logger.debug("%s activated", module.name)
        emit(
            ModuleActivated(
                run_id, module.name, ordinal, list(module.provides) or None
            )
        )
        return Verdict(
            module.name,
            ordinal,
            VerdictKind.ACTIVATED,
            outcome.reason,
            outcome.outcomes,
        )


def resolve(
    modules: Iterable[Module],
    exclusions: Iterable[str] = (),
    context: CapabilityQueryContext | None = None,
    enabled: bool = True,
) -> Resolution:
    return ActivationResolver(ResolverSettings(enabled=enabled)).resolve(
        modules, exclusions, context
    )


__all__ = [
    "ActivationResolver",
    "ResolverSettings",
    "Resolution",
    "resolve",
    "validate_exclusions",
    "EXCLUDED_REASON",
    "DISABLED_REASON",
]
