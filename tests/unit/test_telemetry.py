from dailyspark.observability.telemetry import (
    counter,
    get_counter,
    get_latency_stats,
    reset_counters,
    time_block,
)


def test_counter_accumulates():
    counter("email.sent")
    assert counter("email.sent", 2) == 3
    assert get_counter("email.sent") == 3
    assert get_counter("never.touched") == 0


def test_time_block_records_even_when_block_raises():
    with time_block("aggregation.latency"):
        pass
    try:
        with time_block("aggregation.latency"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    stats = get_latency_stats("aggregation.latency")
    assert stats["count"] == 2
    assert 0.0 <= stats["min"] <= stats["avg"] <= stats["max"]


def test_empty_latency_stats():
    assert get_latency_stats("missing") == {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0}


def test_reset_clears_everything():
    counter("fanout.users", 4)
    with time_block("aggregation.latency"):
        pass

    reset_counters()

    assert get_counter("fanout.users") == 0
    assert get_latency_stats("aggregation.latency")["count"] == 0
