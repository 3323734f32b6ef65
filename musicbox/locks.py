"""
Per-file locks for tag read-modify-write.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class FileLocks:
    """
    Re-entrant lock per track filename.

    Locks are created on first use and kept for the life of the process.
    """

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get(self, filename: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(filename)
            if lock is None:
                lock = self._locks[filename] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, *filenames: str) -> Iterator[None]:
        """Hold the locks of several files, acquired in sorted order."""
        locks = [self.get(name) for name in sorted(set(filenames))]
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()
