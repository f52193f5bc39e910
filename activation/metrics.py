"""In-process metrics for resolution runs, config loading and the API.

A series is a metric name plus a sorted label set, rendered as
``name{k=v,...}`` in snapshots. Counters accumulate floats; samples keep
raw observations and are summarized on read.

Series emitted by this package:
    resolutions_total
    verdicts_total{kind}
    resolution_latency_ms                 (samples)
    resolution_failed_total{error_type}
    ordering_constraints_ignored_total
    events_emitted_total{event}
    handler_exceptions_total{event}
    env_override_total{path}
    config_validation_errors_total{path,code}
    api_request_total{route,method}
    api_request_errors_total{route,method,status}
    api_request_latency_ms{route,method}  (samples)
"""
from __future__ import annotations

from collections import defaultdict
from threading import RLock
from time import time
from typing import Any, DefaultDict, Dict, List, Mapping, Tuple

SeriesKey = Tuple[str, Tuple[Tuple[str, str], ...]]

_counters: DefaultDict[SeriesKey, float] = defaultdict(float)
_samples: DefaultDict[SeriesKey, List[float]] = defaultdict(list)
_lock = RLock()


def _key(name: str, labels: Mapping[str, Any] | None) -> SeriesKey:
    pairs = sorted((str(k), str(v)) for k, v in (labels or {}).items())
    return name, tuple(pairs)


def series_name(key: SeriesKey) -> str:
    name, labels = key
    if not labels:
        return name
    return name + "{" + ",".join(f"{k}={v}" for k, v in labels) + "}"


def inc(
    name: str, labels: Mapping[str, Any] | None = None, value: float = 1.0
) -> None:
    with _lock:
        _counters[_key(name, labels)] += value


def observe(
    name: str, value: float, labels: Mapping[str, Any] | None = None
) -> None:
    with _lock:
        _samples[_key(name, labels)].append(float(value))


def get_counter(name: str, labels: Mapping[str, Any] | None = None) -> float:
    with _lock:
        return _counters.get(_key(name, labels), 0.0)


def _summarize(values: List[float]) -> Dict[str, float]:
    ordered = sorted(values)
    n = len(ordered)
    return {
        "count": n,
        "min": ordered[0],
        "max": ordered[-1],
        "p50": ordered[n // 2],
        "p95": ordered[min(n - 1, int(n * 0.95))],
        "last": values[-1],
    }


def snapshot() -> Dict[str, Any]:
    """Point-in-time copy: {"ts", "counters", "histograms"}."""
    with _lock:
        counters = {series_name(k): v for k, v in _counters.items()}
        histograms = {
            series_name(k): _summarize(v) for k, v in _samples.items() if v
        }
    return {"ts": time(), "counters": counters, "histograms": histograms}


def reset_for_tests() -> None:  # pragma: no cover
    with _lock:
        _counters.clear()
        _samples.clear()


def inc_verdict(kind: str) -> None:
    """kind: activated | excluded | condition_failed"""
    inc("verdicts_total", {"kind": kind})


def inc_ignored_constraint(count: int = 1) -> None:
    if count:
        inc("ordering_constraints_ignored_total", value=count)


__all__ = [
    "inc",
    "observe",
    "get_counter",
    "series_name",
    "snapshot",
    "reset_for_tests",
    "inc_verdict",
    "inc_ignored_constraint",
]
