"""PairLockTable: in-process mutual exclusion keyed by unordered user pair.

Every mutation touching the pair ``{x, y}`` runs while holding
``hold(x, y)``. Operations on disjoint pairs take different locks and
never wait on each other.

Entries are reference counted: a lock exists only while at least one
caller holds or waits for it, so the table does not grow with the
number of pairs ever touched.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from prolink.domain.ids import sorted_pair

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass
class _PairLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class PairLockTable:
    """Table of locks keyed by the sorted user pair."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], _PairLock] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, x: str, y: str) -> Iterator[None]:
        """Block until the pair lock for ``{x, y}`` is held; release on exit.

        Not reentrant: code already holding the pair must not call
        ``hold`` for it again.
        """
        key = sorted_pair(x, y)
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _PairLock()
            entry.users += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]
