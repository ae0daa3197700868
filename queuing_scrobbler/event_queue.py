"""
In-memory, thread-safe event queue.

- Any number of producer threads may enqueue() at once, including while a drain runs.
- A single consumer pops oldest-first with try_dequeue() or drain_iter().
- Unbounded and not persisted: items only leave through a dequeue.
"""

from __future__ import annotations
import threading
from collections import deque
from typing import Deque, Generic, Iterator, TypeVar

T = TypeVar("T")


class EventQueue(Generic[T]):
    def __init__(self):
        self._lock = threading.Lock()
        self._q: Deque[T] = deque()

    # -------- producer side --------
    def enqueue(self, item: T) -> None:
        with self._lock:
            self._q.append(item)

    # -------- consumer side --------
    def try_dequeue(self) -> tuple[bool, T | None]:
        """Pop the head if there is one. Returns (True, item) or (False, None)."""
        with self._lock:
            if not self._q:
                return False, None
            return True, self._q.popleft()

    def drain_iter(self) -> Iterator[T]:
        """
        Pops items from the left (oldest-first) one by one until the queue
        is observed empty. Items are removed before they are yielded.
        """
        while True:
            found, item = self.try_dequeue()
            if not found:
                return
            yield item

    # -------- introspection --------
    def size(self) -> int:
        with self._lock:
            return len(self._q)

    def __len__(self) -> int:
        return self.size()
