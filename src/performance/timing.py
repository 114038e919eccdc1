"""Lightweight timing utilities for per-analysis instrumentation.

Provides:
  - StageTimings collector (one per analysis, never shared)
  - time_block context manager
  - elapsed_ms helper

Each analysis owns its own collector so concurrent analyses never touch
the same counters.
"""
from __future__ import annotations
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional


class StageTimings:
    def __init__(self):
        self._data: Dict[str, Dict[str, float]] = {}

    def add(self, key: str, duration: float, items: Optional[int] = None) -> None:
        rec = self._data.setdefault(key, {"time": 0.0, "calls": 0.0, "items": 0.0})
        rec["time"] += float(duration)
        rec["calls"] += 1.0
        if items is not None:
            rec["items"] += float(items)

    def milliseconds(self) -> Dict[str, float]:
        """Total wall time per stage in ms, rounded to 3 decimals."""
        return {k: round(rec["time"] * 1000.0, 3) for k, rec in self._data.items()}

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        out = {}
        for k, rec in self._data.items():
            avg = rec["time"] / rec["calls"] if rec["calls"] else 0.0
            out[k] = {
                "total_time": round(rec["time"], 6),
                "calls": int(rec["calls"]),
                "avg_time": round(avg, 6),
                **({"total_items": int(rec["items"])} if rec["items"] else {}),
            }
        return out

    def clear(self) -> None:
        self._data.clear()


@contextmanager
def time_block(timings: StageTimings, name: str, items: Optional[int] = None) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        timings.add(name, time.perf_counter() - start, items=items)


def elapsed_ms(start: float) -> float:
    """Milliseconds since a time.perf_counter() reading."""
    return round((time.perf_counter() - start) * 1000.0, 3)


__all__ = ["StageTimings", "time_block", "elapsed_ms"]
