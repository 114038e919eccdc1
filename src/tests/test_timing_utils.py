"""Tests for performance.timing utilities."""
import time
from performance.timing import StageTimings, elapsed_ms, time_block


def test_time_block_and_snapshot():
    timings = StageTimings()
    with time_block(timings, "dummy", items=5):
        time.sleep(0.01)
    snap = timings.snapshot()
    assert "dummy" in snap
    assert snap["dummy"]["calls"] == 1
    assert snap["dummy"]["total_items"] == 5
    assert snap["dummy"]["total_time"] > 0
    assert timings.milliseconds()["dummy"] >= 10.0 * 0.5


def test_time_block_records_on_exception():
    timings = StageTimings()
    try:
        with time_block(timings, "failing"):
            raise ValueError("x")
    except ValueError:
        pass
    assert timings.snapshot()["failing"]["calls"] == 1


def test_collectors_are_independent():
    a, b = StageTimings(), StageTimings()
    a.add("parsing", 0.002)
    assert b.snapshot() == {}
    a.clear()
    assert a.milliseconds() == {}


def test_elapsed_ms_non_negative():
    start = time.perf_counter()
    assert elapsed_ms(start) >= 0.0
