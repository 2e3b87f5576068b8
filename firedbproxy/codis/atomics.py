"""Thread-safe integer and boolean cells with 64-bit wrap-around."""

from __future__ import annotations

import threading

_MODULUS = 1 << 64
_HALF = 1 << 63


def _wrap(value: int) -> int:
    return ((value + _HALF) % _MODULUS) - _HALF


class AtomicInt64:
    """A signed 64-bit integer guarded by a lock."""

    def __init__(self, value: int = 0) -> None:
        self._lock = threading.Lock()
        self._value = _wrap(value)

    def value(self) -> int:
        with self._lock:
            return self._value

    def as_int(self) -> int:
        return self.value()

    def __int__(self) -> int:
        return self.value()

    def set(self, v: int) -> None:
        with self._lock:
            self._value = _wrap(v)

    def compare_and_swap(self, old: int, new: int) -> bool:
        with self._lock:
            if self._value != old:
                return False
            self._value = _wrap(new)
            return True

    def swap(self, v: int) -> int:
        with self._lock:
            previous = self._value
            self._value = _wrap(v)
            return previous

    def add(self, v: int) -> int:
        """Add ``v`` and return the new value."""
        with self._lock:
            self._value = _wrap(self._value + v)
            return self._value

    def sub(self, v: int) -> int:
        return self.add(-v)

    def incr(self) -> int:
        return self.add(1)

    def decr(self) -> int:
        return self.add(-1)


class AtomicBool:
    """A boolean flag guarded by a lock."""

    def __init__(self, value: bool = False) -> None:
        self._cell = AtomicInt64(int(bool(value)))

    def __bool__(self) -> bool:
        return self.is_true()

    def is_true(self) -> bool:
        return self._cell.value() != 0

    def is_false(self) -> bool:
        return self._cell.value() == 0

    def set(self, v: bool) -> None:
        self._cell.set(int(bool(v)))

    def compare_and_swap(self, old: bool, new: bool) -> bool:
        return self._cell.compare_and_swap(int(bool(old)), int(bool(new)))

    def swap(self, v: bool) -> bool:
        return self._cell.swap(int(bool(v))) != 0