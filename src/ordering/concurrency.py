"""In-process keyed locking.

Mutations of one user's cart must not interleave. ``KeyedLocks`` hands out a
re-entrant lock per key; acquiring several keys at once always takes them in
sorted order so two callers can never deadlock on each other.
"""

import threading
from contextlib import contextmanager


class KeyedLocks:
    def __init__(self) -> None:
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys):
        """Hold the locks for every key in ``keys`` for the duration of the block."""
        locks = [self._lock_for(key) for key in sorted({str(k) for k in keys})]
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()
