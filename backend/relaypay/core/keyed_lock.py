"""Keyed Lock — one mutual-exclusion unit per aggregate id.

Invariants:
    - Exactly one lock object per key for the process lifetime
    - hold() acquires distinct keys in sorted order — no two callers can deadlock
    - Locks are released in reverse order even when the body raises

Design Decisions:
    - threading.Lock over asyncio.Lock: critical sections contain no awaits
    - Listeners enqueue onto asyncio queues, so store writes must run on the event
      loop thread: routes that reach the stores stay `async def`
    - Locks are never evicted: accounts are never deleted either
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class KeyedLock:
    """Lazily created per-key locks with ordered multi-key acquisition."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        ordered = [self._lock_for(k) for k in sorted(set(keys))]
        acquired: list[threading.Lock] = []
        try:
            for lock in ordered:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
