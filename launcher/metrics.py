"""In-process launch / deploy metrics.

Counters plus bounded sample windows, read back as a plain dict by the
web surface (``GET /metrics``) and by tests.

    inc(name, labels=None, value=1)
    observe(name, value, labels=None)
    counter(name, labels=None) -> float
    snapshot() -> dict

Samples keep the most recent ``SAMPLE_WINDOW`` values per series so a
long-running launcher that restarts often stays bounded.

Metric names in use:
    - module_operations_total{op}
    - module_operation_errors_total{op,error_type}
    - runtime_restarts_total
    - runtime_stops_total{reason}
    - shutdown_hook_removed_total{result}
    - config_env_override_total{key}
    - config_unresolved_placeholder_total{name}
    - events_emitted_total{event}, handler_exceptions_total{event}
    - deploy_duration_ms (samples)
    - api_request_total{route,method}, api_request_latency_ms (samples)
"""
from __future__ import annotations

from collections import deque
from threading import RLock
from time import time
from typing import Any, Deque, Dict, NamedTuple, Tuple

SAMPLE_WINDOW = 512


class SeriesKey(NamedTuple):
    name: str
    labels: Tuple[Tuple[str, str], ...]

    @classmethod
    def of(cls, name: str, labels: dict[str, Any] | None) -> "SeriesKey":
        pairs = sorted((str(k), str(v)) for k, v in (labels or {}).items())
        return cls(name, tuple(pairs))

    def render(self) -> str:
        if not self.labels:
            return self.name
        inner = ",".join(f"{k}={v}" for k, v in self.labels)
        return f"{self.name}{{{inner}}}"


_lock = RLock()
_counters: Dict[SeriesKey, float] = {}
_samples: Dict[SeriesKey, Deque[float]] = {}


def inc(
    name: str,
    labels: dict[str, Any] | None = None,
    value: float = 1.0,
) -> None:
    key = SeriesKey.of(name, labels)
    with _lock:
        _counters[key] = _counters.get(key, 0.0) + value


def observe(
    name: str,
    value: float,
    labels: dict[str, Any] | None = None,
) -> None:
    key = SeriesKey.of(name, labels)
    with _lock:
        window = _samples.get(key)
        if window is None:
            window = _samples[key] = deque(maxlen=SAMPLE_WINDOW)
        window.append(float(value))


def counter(name: str, labels: dict[str, Any] | None = None) -> float:
    """Current value of one counter series (0 when never incremented)."""
    with _lock:
        return _counters.get(SeriesKey.of(name, labels), 0.0)


def _summary(values: list[float]) -> dict[str, float]:
    ordered = sorted(values)
    return {
        "count": len(values),
        "min": ordered[0],
        "max": ordered[-1],
        "p50": ordered[len(ordered) // 2],
        "last": values[-1],
    }


def snapshot() -> dict[str, Any]:
    with _lock:
        counters = {key.render(): v for key, v in _counters.items()}
        histograms = {
            key.render(): _summary(list(window))
            for key, window in _samples.items()
            if window
        }
    return {"ts": time(), "counters": counters, "histograms": histograms}


def reset_for_tests() -> None:  # pragma: no cover
    with _lock:
        _counters.clear()
        _samples.clear()


__all__ = [
    "inc",
    "observe",
    "counter",
    "snapshot",
    "reset_for_tests",
    "SAMPLE_WINDOW",
]
