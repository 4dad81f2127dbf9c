"""
Incremental Accumulator
Append-only fixed-depth Merkle tree updated in O(depth) per insertion.

This is the authoritative tree state mutated on every deposit. It stores
only one node per level (the last left child still waiting for a right
sibling), never the leaves themselves; leaves live in the deposit log.

Insertion Rules (Hard Contracts):
1. Leaf index = next_index, assigned strictly in insertion order
2. At level l with index idx:
   - idx even: filled_subtrees[l] = node; node = H(node, zeros[l])
   - idx odd:  node = H(filled_subtrees[l], node)
   - idx = idx // 2
3. The final node is the new root; it is recorded in root history
4. Insertion at next_index >= 2^depth raises TreeFullError

Concurrency:
- insert() is serialized by a single-writer lock. Callers that must
  serialize other state changes with insertion (nullifier spends) pass
  the same lock in.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Protocol

from core.config.runtime import TreeConfig
from core.crypto.hashing import FieldHasher, field_to_hex, to_field
from core.merkle.zeros import ZeroTable
from core.schemas.errors import TreeFullError


logger = logging.getLogger(__name__)


class RootRecorder(Protocol):
    """Anything that accepts every root the accumulator produces."""

    def record(self, root: int) -> None: ...


@dataclass(frozen=True)
class InsertResult:
    """Outcome of a single insertion."""
    leaf_index: int
    root: int


class IncrementalAccumulator:
    """
    Incremental Merkle accumulator.

    Usage:
        config = TreeConfig(depth=20)
        acc = IncrementalAccumulator(config, config.create_hasher(), root_history)
        result = acc.insert(commitment)
    """

    def __init__(
        self,
        config: TreeConfig,
        hasher: FieldHasher,
        root_history: Optional[RootRecorder] = None,
        *,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self.config = config
        self.hasher = hasher
        self.zeros = ZeroTable.build(config.depth, config.zero_value, hasher)
        self.root_history = root_history
        self._lock = lock or threading.RLock()

        self._filled_subtrees: list[int] = self.zeros.as_list()
        self._next_index = 0
        self._root = self.zeros.empty_root

        if self.root_history is not None:
            self.root_history.record(self._root)

    @property
    def depth(self) -> int:
        return self.config.depth

    @property
    def capacity(self) -> int:
        return self.config.capacity

    @property
    def next_index(self) -> int:
        return self._next_index

    @property
    def root(self) -> int:
        return self._root

    @property
    def filled_subtrees(self) -> list[int]:
        """Copy of the per-level pending left nodes."""
        with self._lock:
            return list(self._filled_subtrees)

    @property
    def is_full(self) -> bool:
        return self._next_index >= self.capacity

    def insert(self, commitment: int) -> InsertResult:
        """
        Append a commitment as the next leaf.

        The update is computed on a copy of filled_subtrees and committed
        only once the root is known, so a failure leaves no partial state.

        Args:
            commitment: Leaf value (field element)

        Returns:
            InsertResult with the assigned leaf index and the new root

        Raises:
            TreeFullError: If the tree already holds 2^depth leaves
            ValueError: If commitment is not a canonical field element
        """
        leaf = to_field(commitment)

        with self._lock:
            leaf_index = self._next_index
            if leaf_index >= self.capacity:
                raise TreeFullError(self.depth, leaf_index)

            filled = list(self._filled_subtrees)
            node = leaf
            idx = leaf_index
            for level in range(self.depth):
                if idx % 2 == 0:
                    filled[level] = node
                    node = self.hasher.hash_pair(node, self.zeros[level])
                else:
                    node = self.hasher.hash_pair(filled[level], node)
                idx //= 2

            self._filled_subtrees = filled
            self._root = node
            self._next_index = leaf_index + 1

            if self.root_history is not None:
                self.root_history.record(node)

        logger.debug(f"Inserted leaf {leaf_index}, new root {field_to_hex(node)}")
        return InsertResult(leaf_index=leaf_index, root=node)

    def __repr__(self) -> str:
        return (
            f"IncrementalAccumulator(depth={self.depth}, next_index={self._next_index}, "
            f"root={field_to_hex(self._root)})"
        )


__all__ = ["IncrementalAccumulator", "InsertResult", "RootRecorder"]
