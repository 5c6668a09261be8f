from __future__ import annotations

import threading
from collections import deque

DEFAULT_CAPACITY = 5


class RecentAudits:
    """Fixed-capacity list of recently audited URLs, most recent first.

    Re-auditing a URL moves it to the front instead of duplicating it.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._items: deque[str] = deque()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def record(self, url: str) -> None:
        with self._lock:
            try:
                self._items.remove(url)
            except ValueError:
                pass
            self._items.appendleft(url)
            while len(self._items) > self._capacity:
                self._items.pop()

    def snapshot(self) -> list[str]:
        with self._lock:
            return list(self._items)
