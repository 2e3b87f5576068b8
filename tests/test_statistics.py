import random
from datetime import datetime, timedelta

import pytest

from firedbproxy.monitor.core import BigKeyData, HotKeyMonitorData, SlowQueryData, TimePair
from firedbproxy.monitor.statistics import (
    BigKeyPair,
    BigKeyStatistics,
    HotKeyPair,
    HotKeyStatistics,
    SlowQueryPair,
    SlowQueryStatistics,
    resp_to_string,
)


def mock_hotkey_pairs(n, rng):
    return [
        HotKeyPair(
            key=f"mock-key-{rng.randrange(n)}",
            count=rng.randrange(n) + rng.randrange(n) * 2,
        )
        for _ in range(n)
    ]


@pytest.mark.parametrize("round_number", range(1, 17))
def test_hotkey_statistics_filter(round_number):
    rng = random.Random(round_number)
    pairs = mock_hotkey_pairs(1 << 16, rng)
    statistics = HotKeyStatistics()
    statistics.hotkeys = list(pairs)
    statistics.filter()
    filtered_keys = [pair.key for pair in statistics.hotkeys]
    assert len(filtered_keys) == len(set(filtered_keys))
    assert set(filtered_keys) == {pair.key for pair in pairs}


def test_hotkey_filter_keeps_highest_count():
    statistics = HotKeyStatistics()
    statistics.hotkeys = [HotKeyPair("a", 3), HotKeyPair("b", 1), HotKeyPair("a", 9), HotKeyPair("a", 4)]
    statistics.filter()
    assert {pair.key: pair.count for pair in statistics.hotkeys} == {"a": 9, "b": 1}


def test_hotkey_statistics_from_monitor_data():
    start = datetime(2024, 1, 1, 12, 0, 0)
    data = HotKeyMonitorData(
        hot_key_data={"a": 10, "b": 4},
        time_range=TimePair(start=start, end=start + timedelta(seconds=2)),
    )
    statistics = HotKeyStatistics(data, 0)
    assert statistics.count == 2
    assert statistics.total == 14
    averages = {pair.key: pair.count_avg_per_second for pair in statistics.hotkeys}
    assert averages == {"a": 5.0, "b": 2.0}


def test_hotkey_statistics_zero_range_counts_as_one_second():
    now = datetime(2024, 1, 1)
    data = HotKeyMonitorData(hot_key_data={"k": 7}, time_range=TimePair(start=now, end=now))
    statistics = HotKeyStatistics(data, 0)
    assert statistics.hotkeys[0].count_avg_per_second == 7.0


def test_hotkey_statistics_threshold_keeps_top():
    data = HotKeyMonitorData(hot_key_data={"a": 1, "b": 5, "c": 3})
    statistics = HotKeyStatistics(data, 2)
    assert [pair.key for pair in statistics.hotkeys] == ["b", "c"]
    assert statistics.count == 3


def test_bigkey_statistics_dedup_and_sum():
    now = datetime(2024, 1, 1)
    data = [BigKeyData("a", 100, now), BigKeyData("a", 300, now), BigKeyData("b", 50, now)]
    statistics = BigKeyStatistics(data, 0)
    assert statistics.key_count == 3
    assert statistics.value_size_sum == 450
    assert {pair.key: pair.value_size for pair in statistics.big_keys} == {"a": 300, "b": 50}


def test_bigkey_statistics_threshold():
    now = datetime(2024, 1, 1)
    data = [BigKeyData("a", 10, now), BigKeyData("b", 30, now), BigKeyData("c", 20, now)]
    statistics = BigKeyStatistics(data, 1)
    assert statistics.big_keys == [BigKeyPair("b", 30, now)]


def test_resp_to_string_format():
    assert resp_to_string([b"GET", b"foo"]) == "[GET, foo"
    assert resp_to_string([]) == "["


def test_resp_to_string_rejects_other_types():
    with pytest.raises(TypeError):
        resp_to_string([b"SET", 5])


def test_slow_query_filter_dedups_exec_time():
    statistics = SlowQueryStatistics()
    statistics.slow_queries = [
        SlowQueryPair(None, 10, "[A"),
        SlowQueryPair(None, 10, "[B"),
        SlowQueryPair(None, 20, "[C"),
    ]
    statistics.filter()
    assert [pair.format_resp_command for pair in statistics.slow_queries] == ["[A", "[C"]


def test_slow_query_statistics_from_data():
    start = datetime(2024, 1, 1)
    data = [
        SlowQueryData(resp=[b"GET", b"x"], start_time=start, end_time=start + timedelta(milliseconds=15)),
        SlowQueryData(resp=[b"SET", b"y"], start_time=start, end_time=start + timedelta(milliseconds=40)),
        SlowQueryData(resp=[b"DEL", b"z"], start_time=start, end_time=start + timedelta(milliseconds=25)),
    ]
    statistics = SlowQueryStatistics(data, 0)
    assert statistics.total == 3
    assert [pair.exec_time for pair in statistics.slow_queries] == [15, 40, 25]
    assert statistics.slow_queries[0].format_resp_command == "[GET, x"

    sorted_stats = SlowQueryStatistics(data, 2)
    assert [pair.exec_time for pair in sorted_stats.slow_queries] == [40, 25, 15]