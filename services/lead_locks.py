"""
Per-lead write serialization.

Two triggers for the same lead (e.g. a classification write and a stop write)
must not interleave their read-modify-write sequences. Different leads never
block each other.

Locks are in-process: they serialize threads of one API worker only.
Cross-process safety comes from the conditional writes in the repository.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator
from uuid import UUID


class _LeadLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        # Threads holding or waiting for the lock; guarded by the registry.
        self.users = 0


class LeadLockRegistry:
    """
    Hands out one lock per lead ID.

    An entry lives only while some thread holds or waits for it, so the
    registry does not grow with the number of leads ever seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[UUID, _LeadLock] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def __contains__(self, lead_id: object) -> bool:
        with self._guard:
            return lead_id in self._locks

    @contextmanager
    def hold(self, lead_id: UUID) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(lead_id)
            if entry is None:
                entry = _LeadLock()
                self._locks[lead_id] = entry
            entry.users += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[lead_id]


__all__ = ["LeadLockRegistry"]
