import threading
from collections import defaultdict
from typing import Any

_LOCK = threading.Lock()
_COUNTERS: dict[tuple, float] = defaultdict(float)
_LATENCIES: dict[tuple, list[float]] = defaultdict(list)

MAX_SAMPLES_PER_SERIES = 1000


def _key(name: str, labels: dict[str, Any]) -> tuple:
    return (name, tuple(sorted((k, str(v)) for k, v in labels.items())))


def incr(name: str, amount: float = 1, **labels: Any) -> None:
    with _LOCK:
        _COUNTERS[_key(name, labels)] += amount


def observe_ms(name: str, value_ms: float, **labels: Any) -> None:
    with _LOCK:
        samples = _LATENCIES[_key(name, labels)]
        samples.append(float(value_ms))
        if len(samples) > MAX_SAMPLES_PER_SERIES:
            del samples[: len(samples) - MAX_SAMPLES_PER_SERIES]


def _percentile(sorted_values: list[float], pct: float) -> float:
    if not sorted_values:
        return 0.0
    idx = min(len(sorted_values) - 1, int(round(pct * (len(sorted_values) - 1))))
    return sorted_values[idx]


def snapshot() -> dict:
    with _LOCK:
        counters = [
            {"name": name, "labels": dict(labels), "value": value}
            for (name, labels), value in _COUNTERS.items()
        ]
        latencies = []
        for (name, labels), samples in _LATENCIES.items():
            ordered = sorted(samples)
            latencies.append(
                {
                    "name": name,
                    "labels": dict(labels),
                    "count": len(ordered),
                    "p50_ms": _percentile(ordered, 0.50),
                    "p95_ms": _percentile(ordered, 0.95),
                    "max_ms": ordered[-1] if ordered else 0.0,
                }
            )
    return {"counters": counters, "latencies": latencies}


def counter_value(name: str, **labels: Any) -> float:
    with _LOCK:
        return _COUNTERS.get(_key(name, labels), 0.0)


def reset() -> None:
    with _LOCK:
        _COUNTERS.clear()
        _LATENCIES.clear()
