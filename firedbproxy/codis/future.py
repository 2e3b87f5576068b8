"""A wait group that also gathers one keyed result per finished task."""

from __future__ import annotations

import threading
from typing import Any


class Future:
    """Collect values from several workers and wait for all of them."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = 0
        self._values: dict[str, Any] = {}

    def add(self) -> None:
        """Announce one more pending result."""
        with self._cond:
            self._pending += 1

    def done(self, key: str, val: Any) -> None:
        """Store a result and mark one pending task finished."""
        with self._cond:
            if self._pending <= 0:
                raise ValueError("negative pending count")
            self._values[key] = val
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def wait(self) -> dict[str, Any]:
        """Block until every announced task is done and return the results."""
        with self._cond:
            self._cond.wait_for(lambda: self._pending == 0)
            return dict(self._values)