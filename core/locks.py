from contextlib import contextmanager
from threading import Lock, RLock
from typing import Dict, Iterator


class StoreLocks:
    """One re-entrant lock per store id.

    Wraps the read-then-write sequences on a store (trial start, billing
    ratchet, quota count + insert, plan activation) so two requests for the
    same store cannot interleave inside one process.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: Dict[str, RLock] = {}

    def _lock_for(self, store_id: str) -> RLock:
        with self._guard:
            lock = self._locks.get(store_id)
            if lock is None:
                lock = RLock()
                self._locks[store_id] = lock
            return lock

    @contextmanager
    def hold(self, store_id: str) -> Iterator[None]:
        lock = self._lock_for(str(store_id))
        with lock:
            yield

    def discard(self, store_id: str) -> None:
        with self._guard:
            self._locks.pop(str(store_id), None)


store_locks = StoreLocks()
