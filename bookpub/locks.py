"""In-process advisory locks keyed by ISBN or drop directory."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLockRegistry:
    """Hands out one re-entrant lock per key.

    Reconciling an archive and publishing a title both hold the lock of the
    title's ISBN, so the two never touch the same title tree at once. A scan
    cycle holds the lock of its drop directory. A key's lock is dropped once
    nobody holds or waits for it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._users: dict[str, int] = {}

    def __contains__(self, key: str) -> bool:
        with self._guard:
            return key in self._locks

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]


# Shared by the reconciler and the publisher unless a registry is injected
TITLE_LOCKS = KeyedLockRegistry()
