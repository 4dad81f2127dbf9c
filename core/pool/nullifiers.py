"""
Nullifier Set
Spent nullifier hashes. Grows only; a spent nullifier is never cleared.
"""
from __future__ import annotations

import threading
from typing import Optional

from core.crypto.hashing import field_to_hex
from core.schemas.errors import DoubleSpendError


class NullifierSet:
    """
    Double-spend guard.

    check_and_spend() tests and sets under one lock, so two concurrent
    withdrawals with the same nullifier can never both succeed. Pass the
    pool's authority lock to serialize spends with insertions.
    """

    def __init__(self, *, lock: Optional[threading.RLock] = None) -> None:
        self._spent: set[int] = set()
        self._lock = lock or threading.RLock()

    def check_and_spend(self, nullifier_hash: int) -> None:
        """
        Mark a nullifier as spent.

        Raises:
            DoubleSpendError: If it was already spent; no state changes
        """
        with self._lock:
            if nullifier_hash in self._spent:
                raise DoubleSpendError(field_to_hex(nullifier_hash))
            self._spent.add(nullifier_hash)

    def is_spent(self, nullifier_hash: int) -> bool:
        with self._lock:
            return nullifier_hash in self._spent

    def __len__(self) -> int:
        return len(self._spent)


__all__ = ["NullifierSet"]
