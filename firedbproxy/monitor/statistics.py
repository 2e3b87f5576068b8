"""Summaries of monitor data prepared for the metric exporters."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable

from firedbproxy.monitor.core import BigKeyData, HotKeyMonitorData, SlowQueryData


def _milliseconds(start: datetime | None, end: datetime | None) -> int:
    if start is None or end is None:
        return 0
    return int((end - start) / timedelta(milliseconds=1))


def _range_seconds(start: datetime | None, end: datetime | None) -> float:
    if start is None or end is None:
        return 1.0
    seconds = (end - start).total_seconds()
    return seconds if seconds != 0 else 1.0


@dataclass
class HotKeyPair:
    key: str
    count: int
    count_avg_per_second: float = 0.0


class HotKeyStatistics:
    """Hot keys of one sampling window, deduplicated and optionally trimmed."""

    def __init__(self, data: HotKeyMonitorData | None = None, threshold: int = 0) -> None:
        self.count = 0
        self.total = 0
        self.hotkeys: list[HotKeyPair] = []
        if data is not None:
            self._load(data, threshold)

    def _load(self, data: HotKeyMonitorData, threshold: int) -> None:
        with data.lock:
            counts = dict(data.hot_key_data)
            time_range = data.time_range
            range_sec = _range_seconds(time_range.start, time_range.end)
        self.count = len(counts)
        self.hotkeys = [
            HotKeyPair(key=key, count=count, count_avg_per_second=count / range_sec)
            for key, count in counts.items()
        ]
        self.total = sum(counts.values())
        self.filter()
        if threshold > 0 and len(self.hotkeys) > threshold:
            self.hotkeys.sort(key=lambda pair: pair.count, reverse=True)
            del self.hotkeys[threshold:]

    def filter(self) -> None:
        """Keep one pair per key, the one with the highest count."""
        best: dict[str, HotKeyPair] = {}
        for pair in self.hotkeys:
            current = best.get(pair.key)
            if current is None or pair.count > current.count:
                best[pair.key] = pair
        self.hotkeys = list(best.values())


@dataclass
class BigKeyPair:
    key: str
    value_size: int
    start_time: datetime | None = None


class BigKeyStatistics:
    """Big keys seen since the last scrape, deduplicated and optionally trimmed."""

    def __init__(self, data: Iterable[BigKeyData] | None = None, threshold: int = 0) -> None:
        self.key_count = 0
        self.value_size_sum = 0
        self.big_keys: list[BigKeyPair] = []
        if data is not None:
            self._load(list(data), threshold)

    def _load(self, data: list[BigKeyData], threshold: int) -> None:
        self.key_count = len(data)
        self.value_size_sum = sum(item.value_size for item in data)
        self.big_keys = [
            BigKeyPair(key=item.key, value_size=item.value_size, start_time=item.time)
            for item in data
        ]
        self.filter()
        if threshold > 0 and len(self.big_keys) > threshold:
            self.big_keys.sort(key=lambda pair: pair.value_size, reverse=True)
            del self.big_keys[threshold:]

    def filter(self) -> None:
        """Keep one pair per key, the one with the largest value."""
        best: dict[str, BigKeyPair] = {}
        for pair in self.big_keys:
            current = best.get(pair.key)
            if current is None or pair.value_size > current.value_size:
                best[pair.key] = pair
        self.big_keys = list(best.values())


def resp_to_string(resp: Iterable[Any] | None) -> str:
    """Render command arguments as ``[arg, arg, ...`` (no closing bracket)."""
    parts = []
    for item in resp or ():
        if isinstance(item, (bytes, bytearray)):
            parts.append(bytes(item).decode("utf-8", errors="replace"))
        elif isinstance(item, str):
            parts.append(item)
        else:
            raise TypeError(f"command argument must be bytes, not {type(item).__name__}")
    return "[" + ", ".join(parts)


@dataclass
class SlowQueryPair:
    start_time: datetime | None
    exec_time: int
    format_resp_command: str


class SlowQueryStatistics:
    """Slow queries since the last scrape, one per distinct execution time."""

    def __init__(self, data: Iterable[SlowQueryData] | None = None, threshold: int = 0) -> None:
        self.total = 0
        self.slow_queries: list[SlowQueryPair] = []
        if data is not None:
            self._load(list(data), threshold)

    def _load(self, data: list[SlowQueryData], threshold: int) -> None:
        self.total = len(data)
        self.slow_queries = [
            SlowQueryPair(
                start_time=item.start_time,
                exec_time=_milliseconds(item.start_time, item.end_time),
                format_resp_command=resp_to_string(item.resp),
            )
            for item in data
        ]
        self.filter()
        if threshold > 0 and len(self.slow_queries) > threshold:
            self.slow_queries.sort(key=lambda pair: pair.exec_time, reverse=True)

    def filter(self) -> None:
        """Drop queries whose execution time was already seen, keeping the first."""
        seen: set[int] = set()
        kept = []
        for pair in self.slow_queries:
            if pair.exec_time in seen:
                continue
            seen.add(pair.exec_time)
            kept.append(pair)
        self.slow_queries = kept