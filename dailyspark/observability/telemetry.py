"""
In-process telemetry for the digest pipeline.

Counters and latencies live in memory and are mirrored to the log so a
scheduled run can be audited from its output alone. Tests read the
counters directly to assert that a code path was taken.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("dailyspark.telemetry")

_COUNTERS: dict[str, int] = {}
_LATENCIES: dict[str, list[float]] = {}


def log_event(event_name: str, **fields: Any) -> None:
    """Log ``event=<name>`` with its fields. Pass user ids, not email addresses."""
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """Bump ``name`` by ``increment`` and return the new total."""
    value = _COUNTERS.get(name, 0) + increment
    _COUNTERS[name] = value
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    return _COUNTERS.get(name, 0)


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """Record the block's wall time in seconds under ``metric_name``, even if it raises."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("timing=%s seconds=%.6f", metric_name, elapsed)
        _LATENCIES.setdefault(metric_name, []).append(elapsed)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """Count, min, max and average for a timed block."""
    samples = _LATENCIES.get(metric_name, [])
    if not samples:
        return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0}

    return {
        "count": len(samples),
        "min": min(samples),
        "max": max(samples),
        "avg": sum(samples) / len(samples),
    }


def reset_counters() -> None:
    """Forget every counter and latency sample."""
    _COUNTERS.clear()
    _LATENCIES.clear()
