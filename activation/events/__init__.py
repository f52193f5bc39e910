"""Resolution lifecycle events.

One run emits ResolutionStarted, then one verdict event per module in
resolution order (ModuleActivated | ModuleExcluded | ModuleConditionFailed),
then ResolutionCompleted. A structural failure emits only ResolutionFailed.
Every event of a run carries the same run_id.

    unsubscribe = subscribe("ModuleActivated", handler)  # one event type
    unsubscribe = on(handler)                            # every event

A built-in subscriber turns events into metrics.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from time import time
from typing import Any, Callable, Dict

from activation import metrics as _metrics
from .bus import ANY, EventBus, Handler


@dataclass(slots=True)
class BaseEvent:
    @property
    def name(self) -> str:
        return type(self).__name__

    def to_event(self) -> Dict[str, Any]:  # noqa: D401
        data = asdict(self)
        data["ts"] = time()
        return data


@dataclass(slots=True)
class ResolutionStarted(BaseEvent):
    run_id: str
    modules: int
    exclusions: int
    environment: str | None = None


@dataclass(slots=True)
class ModuleActivated(BaseEvent):
    run_id: str
    module: str
    ordinal: int
    provides: list[str] | None = None


@dataclass(slots=True)
class ModuleExcluded(BaseEvent):
    run_id: str
    module: str
    ordinal: int
    reason: str


@dataclass(slots=True)
class ModuleConditionFailed(BaseEvent):
    """reason: description of the first failing condition."""

    run_id: str
    module: str
    ordinal: int
    reason: str


@dataclass(slots=True)
class ResolutionCompleted(BaseEvent):
    run_id: str
    activated: int
    excluded: int
    condition_failed: int
    latency_ms: float


@dataclass(slots=True)
class ResolutionFailed(BaseEvent):
    """No report was produced.

    error_type: taxonomy code (ordering-cycle | unknown-exclusion | ...)
    """

    run_id: str
    error_type: str
    message: str | None = None


_VERDICT_EVENTS = {
    "ModuleActivated": "activated",
    "ModuleExcluded": "excluded",
    "ModuleConditionFailed": "condition_failed",
}


def _record_metrics(name: str, payload: Dict[str, Any]) -> None:
    if name in _VERDICT_EVENTS:
        _metrics.inc_verdict(_VERDICT_EVENTS[name])
    elif name == "ResolutionStarted":
        _metrics.inc("resolutions_total")
    elif name == "ResolutionCompleted":
        _metrics.observe("resolution_latency_ms", payload["latency_ms"])
    elif name == "ResolutionFailed":
        _metrics.inc(
            "resolution_failed_total", {"error_type": payload["error_type"]}
        )


_BUS = EventBus()


def _install_defaults() -> None:
    _BUS.subscribe(ANY, _record_metrics)


_install_defaults()


def emit(event: BaseEvent) -> None:
    _BUS.publish(event.name, event.to_event())


def subscribe(name: str, handler: Handler) -> Callable[[], None]:
    return _BUS.subscribe(name, handler)


def on(handler: Handler) -> Callable[[], None]:
    return _BUS.subscribe(ANY, handler)


def reset_listeners_for_tests() -> None:  # pragma: no cover
    _BUS.clear()
    _install_defaults()


__all__ = [
    "ANY",
    "EventBus",
    "emit",
    "subscribe",
    "on",
    "BaseEvent",
    "ResolutionStarted",
    "ModuleActivated",
    "ModuleExcluded",
    "ModuleConditionFailed",
    "ResolutionCompleted",
    "ResolutionFailed",
    "reset_listeners_for_tests",
]
