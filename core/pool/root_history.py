"""
Root History
Every root the accumulator has produced, used to accept proofs built
against slightly older tree states.

RootHistory (reference design) never evicts: any proof that was ever
valid stays acceptable, at the cost of unbounded growth.

BoundedRootHistory keeps only the last `window` roots in a ring buffer.
A proof older than `window` insertions then fails with StaleRootError,
so the window size directly sets the stale-root failure rate.
"""
from __future__ import annotations

import threading
from collections import deque


class RootHistory:
    """
    Append-only set of known roots.

    record() takes a lock; is_known() does not, since a recorded root
    never leaves the set.
    """

    def __init__(self) -> None:
        self._roots: set[int] = set()
        self._order: list[int] = []
        self._lock = threading.Lock()

    def record(self, root: int) -> None:
        with self._lock:
            self._roots.add(root)
            self._order.append(root)

    def is_known(self, root: int) -> bool:
        return root in self._roots

    @property
    def latest(self) -> int | None:
        return self._order[-1] if self._order else None

    @property
    def window(self) -> int | None:
        return None

    def roots(self) -> list[int]:
        """Roots in the order they were produced (genesis first)."""
        with self._lock:
            return list(self._order)

    def __contains__(self, root: int) -> bool:
        return self.is_known(root)

    def __len__(self) -> int:
        return len(self._order)


class BoundedRootHistory(RootHistory):
    """Ring buffer of the most recent `window` roots."""

    def __init__(self, window: int) -> None:
        if window < 1:
            raise ValueError(f"Root history window must be >= 1, got {window}")
        super().__init__()
        self._window = window
        self._ring: deque[int] = deque(maxlen=window)
        self._counts: dict[int, int] = {}

    @property
    def window(self) -> int:
        return self._window

    def record(self, root: int) -> None:
        with self._lock:
            if len(self._ring) == self._window:
                evicted = self._ring[0]
                self._counts[evicted] -= 1
                if self._counts[evicted] == 0:
                    del self._counts[evicted]
                    self._roots.discard(evicted)
            self._ring.append(root)
            self._counts[root] = self._counts.get(root, 0) + 1
            self._roots.add(root)

    def is_known(self, root: int) -> bool:
        with self._lock:
            return root in self._roots

    @property
    def latest(self) -> int | None:
        return self._ring[-1] if self._ring else None

    def roots(self) -> list[int]:
        with self._lock:
            return list(self._ring)

    def __len__(self) -> int:
        return len(self._ring)


def create_root_history(window: int | None) -> RootHistory:
    """Unbounded history when window is None, otherwise a ring buffer."""
    if window is None:
        return RootHistory()
    return BoundedRootHistory(window)


__all__ = ["RootHistory", "BoundedRootHistory", "create_root_history"]
