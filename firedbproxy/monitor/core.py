"""Hot key, big key and slow query tracking for proxied requests."""

from __future__ import annotations

import logging
import math
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any, Callable

logger = logging.getLogger(__name__)

INIT_INDEX = -1
MIN_LRU_SIZE = 128
MAX_LRU_SIZE = 1024


class WorkStatus(IntEnum):
    """State of the hot key sampling job."""

    ING = 1
    STOP = 2


@dataclass
class HotKeyConf:
    enable: bool = False
    monitor_job_interval: int = 0
    monitor_job_lifetime: int = 0
    second_hot_threshold: int = 0
    second_increase_threshold: int = 0
    lru_size: int = 0
    enable_cache: bool = False
    max_cache_lifetime: int = 0


@dataclass
class BigKeyConf:
    enable: bool = False
    key_max_bytes: int = 0
    value_max_bytes: int = 0
    lru_size: int = 0
    enable_cache: bool = False
    max_cache_lifetime: int = 0


@dataclass
class SlowQueryConf:
    enable: bool = False
    slow_query_time_threshold: int = 0
    max_list_size: int = 0


@dataclass
class TimePair:
    start: datetime | None = None
    end: datetime | None = None


@dataclass
class HotKeyMonitorData:
    """Result of the most recent hot key sampling window."""

    hot_key_data: dict[str, int] = field(default_factory=dict)
    time_range: TimePair = field(default_factory=TimePair)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def reset_data(self) -> None:
        with self.lock:
            self.hot_key_data = {}
            self.time_range = TimePair()


@dataclass
class HotKeyData:
    key: str
    value: bytes
    count: int = 1


@dataclass
class BigKeyData:
    key: str
    value_size: int
    time: datetime


@dataclass
class SlowQueryData:
    resp: list[Any] | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


class _LRU:
    """A bounded mapping that evicts the least recently used entry."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("must provide a positive size")
        self._size = size
        self._items: OrderedDict[Any, Any] = OrderedDict()
        self.lock = threading.RLock()

    def add(self, key: Any, value: Any) -> None:
        with self.lock:
            if key in self._items:
                self._items.move_to_end(key)
            self._items[key] = value
            while len(self._items) > self._size:
                self._items.popitem(last=False)

    def get(self, key: Any) -> Any | None:
        with self.lock:
            if key not in self._items:
                return None
            self._items.move_to_end(key)
            return self._items[key]

    def contains(self, key: Any) -> bool:
        with self.lock:
            return key in self._items

    def keys(self) -> list[Any]:
        """Keys from oldest to newest."""
        with self.lock:
            return list(self._items)

    def purge(self) -> None:
        with self.lock:
            self._items.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._items)


def _clamp_lru(size: int) -> int:
    return max(MIN_LRU_SIZE, min(MAX_LRU_SIZE, size))


def _key_len(key: str | bytes) -> int:
    return len(key.encode("utf-8")) if isinstance(key, str) else len(key)


def _to_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _milliseconds(delta: timedelta) -> int:
    return int(delta / timedelta(milliseconds=1))


class Monitor:
    """Collects request statistics that the exporters later publish."""

    def __init__(
        self,
        hot_key_conf: HotKeyConf,
        big_key_conf: BigKeyConf,
        slow_query_conf: SlowQueryConf,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self._stop_event = threading.Event()
        self._sleep = sleep or self._stop_event.wait
        self._thread: threading.Thread | None = None

        self.cache: Any = None
        self.connection_gauge: Any = None

        self.hot_key_conf = hot_key_conf
        hot_key_conf.lru_size = _clamp_lru(hot_key_conf.lru_size)
        self._hot_key_lru = _LRU(hot_key_conf.lru_size)
        self._status_lock = threading.Lock()
        self._status = WorkStatus.STOP
        self._count_lock = threading.Lock()
        self._key_total_request_count = 0
        self._last_loop_request_count = 0
        self._job_start: datetime | None = None
        self.hot_key_monitor_data = HotKeyMonitorData()

        self.big_key_conf = big_key_conf
        big_key_conf.lru_size = _clamp_lru(big_key_conf.lru_size)
        self._big_key_lru = _LRU(big_key_conf.lru_size)
        self._big_key_lock = threading.Lock()

        self.slow_query_conf = slow_query_conf
        self._slow_lock = threading.RLock()
        self._slow_list = [SlowQueryData() for _ in range(max(slow_query_conf.max_list_size, 0))]
        self._slow_index = INIT_INDEX

    # hot keys

    @property
    def status(self) -> WorkStatus:
        with self._status_lock:
            return self._status

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def is_should_put_hot_key(self) -> bool:
        """Count one request and tell whether a sampling window is open."""
        with self._count_lock:
            self._key_total_request_count += 1
        return self.status is WorkStatus.ING

    def put_hot_key(self, key: str, value: bytes) -> None:
        """Record one access of ``key`` during a sampling window."""
        lru = self._hot_key_lru
        with lru.lock:
            data = lru.get(key)
            if data is None:
                lru.add(key, HotKeyData(key=key, value=value, count=1))
                return
            data.count += 1
            if data.value != value:
                data.value = value

    def run_hot_key_cycle(self) -> list[HotKeyData]:
        """Run one sampling window and return the keys judged hot."""
        conf = self.hot_key_conf
        self._hot_key_lru.purge()

        with self._status_lock:
            if self._status is WorkStatus.STOP:
                self._status = WorkStatus.ING
                self._job_start = datetime.now()

        self._sleep(conf.monitor_job_lifetime)

        with self._status_lock:
            self._status = WorkStatus.STOP
        job_end = datetime.now()

        hot: list[HotKeyData] = []
        for key in self._hot_key_lru.keys():
            data = self._hot_key_lru.get(key)
            if data is None:
                continue
            if conf.monitor_job_lifetime > 0:
                speed = data.count / conf.monitor_job_lifetime
            else:
                speed = math.inf
            if speed > conf.second_hot_threshold:
                hot.append(data)
                logger.warning("Found hotkey: %s, speed : %f count/s", data.key, speed)

        if hot:
            monitor_data = self.hot_key_monitor_data
            with monitor_data.lock:
                monitor_data.hot_key_data = {item.key: item.count for item in hot}
                monitor_data.time_range = TimePair(start=self._job_start, end=job_end)

        with self._count_lock:
            self._last_loop_request_count = self._key_total_request_count
        for _ in range(conf.monitor_job_interval):
            self._sleep(1)
            with self._count_lock:
                current = self._key_total_request_count
                last = self._last_loop_request_count
                self._last_loop_request_count = current
            if current - last >= conf.second_increase_threshold:
                break
        return hot

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_hot_key_cycle()
            except Exception:
                logger.exception("hot key monitor cycle failed")

    def begin_monitor_hot_key(self) -> None:
        """Start sampling hot keys in a background thread."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="hotkey-monitor", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the background sampler and wait for it to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join()
        self._thread = None

    # big keys

    def put_big_key(self, key: str, value_size: int) -> bool:
        """Record ``key`` if its name or value exceeds the configured limits."""
        if value_size == 0:
            return False
        conf = self.big_key_conf
        if _key_len(key) >= conf.key_max_bytes or value_size >= conf.value_max_bytes:
            self._big_key_lru.add(key, BigKeyData(key=key, value_size=value_size, time=datetime.now()))
            logger.warning("Found bigkey: %s, value size: %d byte", key, value_size)
            return True
        return False

    def get_big_key_data(self) -> list[BigKeyData]:
        """Return the recorded big keys, oldest first, and forget them."""
        with self._big_key_lock:
            try:
                result = []
                for key in self._big_key_lru.keys():
                    data = self._big_key_lru.get(key)
                    if data is not None:
                        result.append(BigKeyData(key=key, value_size=data.value_size, time=data.time))
                return result
            finally:
                self._big_key_lru.purge()

    # slow queries

    def is_slow_query(self, args: list[Any], start_time: datetime, end_time: datetime) -> bool:
        """Record the command if it took at least the threshold; return whether it did."""
        elapsed = _milliseconds(end_time - start_time)
        conf = self.slow_query_conf
        if elapsed < conf.slow_query_time_threshold:
            return False

        with self._slow_lock:
            index = self._slow_index + 1
            if index >= conf.max_list_size or index >= len(self._slow_list):
                return False
            entry = self._slow_list[index]
            entry.resp = args
            entry.start_time = start_time
            entry.end_time = end_time
            self._slow_index = index

        command = "".join(_to_text(arg) + " " for arg in args)
        logger.warning("Found slowquery: %s, cost : %d ms.", command, elapsed)
        return True

    def get_slow_query_data(self) -> tuple[list[SlowQueryData], int]:
        """Return the recorded slow queries with their count, and clear them."""
        with self._slow_lock:
            count = self._slow_index + 1
            data = self._slow_list[:count]
            for position in range(count):
                self._slow_list[position] = SlowQueryData()
            self._slow_index = INIT_INDEX
            return data, count