"""
Tree Reconstruction
Rebuild a static Merkle tree snapshot from the ordered deposit leaf log.

The indexer replays every commitment ever inserted (index 0 onward, no
gaps) and must arrive at exactly the root the incremental accumulator
produced after the same insertions.

Canonical Reconstruction Rules (Hard Contracts):
1. Leaves occupy positions 0..count-1 in insertion order
2. The leaf layer is padded to exactly 2^depth positions with zeros[0]
3. Parent hashing: parent = H(left, right), bottom-up, depth times
4. Root of an empty tree: H(zeros[depth-1], zeros[depth-1])

Storage Notes:
- A fully padded subtree at level l always hashes to zeros[l], so the
  snapshot stores only the occupied prefix of each level and answers
  every other position from the zero table. build_dense_root() performs
  the literal 2^depth padding and is used to cross-check small trees.
- Padding each level only "to the next even count" with the leaf zero
  and stopping once one node remains (build_naive_root) is NOT
  equivalent and produces a different root. It is kept solely as a
  regression reference.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from core.config.runtime import TreeConfig
from core.crypto.hashing import FieldHasher, field_to_hex, to_field
from core.merkle.zeros import ZeroTable
from core.schemas.errors import ReconstructionMismatchError, TreeFullError


logger = logging.getLogger(__name__)

# Largest depth for which build_dense_root() will materialize 2^depth leaves
DENSE_REBUILD_MAX_DEPTH = 16


@dataclass(frozen=True)
class TreeSnapshot:
    """
    Immutable full-tree snapshot.

    Attributes:
        zeros: Zero table the snapshot was built with
        levels: Occupied prefix of each level; levels[0] are the leaves,
                levels[depth] holds the root when any leaf exists
        root: Root of the conceptual 2^depth tree
    """
    zeros: ZeroTable
    levels: tuple[tuple[int, ...], ...]
    root: int

    @property
    def depth(self) -> int:
        return self.zeros.depth

    @property
    def leaf_count(self) -> int:
        return len(self.levels[0])

    @property
    def leaves(self) -> tuple[int, ...]:
        return self.levels[0]

    def zero_at(self, level: int) -> int:
        """Hash of an empty subtree whose root sits at the given level."""
        if level == self.depth:
            return self.zeros.empty_root
        return self.zeros[level]

    def node_at(self, level: int, index: int) -> int:
        """
        Value of the node at (level, index) in the padded 2^depth tree.

        Raises:
            IndexError: If (level, index) lies outside the tree
        """
        if not 0 <= level <= self.depth:
            raise IndexError(f"Level {level} out of range for depth {self.depth}")
        if not 0 <= index < (1 << (self.depth - level)):
            raise IndexError(f"Index {index} out of range at level {level}")

        occupied = self.levels[level]
        if index < len(occupied):
            return occupied[index]
        return self.zero_at(level)

    def index_of(self, commitment: int) -> int | None:
        """Leaf index of a commitment, or None if it was never inserted."""
        try:
            return self.levels[0].index(commitment)
        except ValueError:
            return None


def build_snapshot(
    leaves: Sequence[int],
    zeros: ZeroTable,
    hasher: FieldHasher,
) -> TreeSnapshot:
    """
    Build a snapshot from the complete ordered leaf list.

    Args:
        leaves: Every commitment inserted so far, in leaf-index order
        zeros: Zero table for the configured depth and zero value
        hasher: Same hasher the accumulator uses

    Returns:
        TreeSnapshot whose root equals the accumulator root after
        inserting the same leaves

    Raises:
        TreeFullError: If there are more than 2^depth leaves
    """
    depth = zeros.depth
    if len(leaves) > (1 << depth):
        raise TreeFullError(depth, len(leaves))

    current: list[int] = [to_field(leaf) for leaf in leaves]
    levels: list[tuple[int, ...]] = [tuple(current)]

    for level in range(depth):
        next_level: list[int] = []
        for i in range(0, len(current), 2):
            left = current[i]
            right = current[i + 1] if i + 1 < len(current) else zeros[level]
            next_level.append(hasher.hash_pair(left, right))
        levels.append(tuple(next_level))
        current = next_level

    root = current[0] if current else zeros.empty_root
    return TreeSnapshot(zeros=zeros, levels=tuple(levels), root=root)


def snapshot_from_config(leaves: Sequence[int], config: TreeConfig, hasher: FieldHasher) -> TreeSnapshot:
    """Convenience wrapper building the zero table from a TreeConfig."""
    zeros = ZeroTable.build(config.depth, config.zero_value, hasher)
    return build_snapshot(leaves, zeros, hasher)


def build_dense_root(
    leaves: Sequence[int],
    zeros: ZeroTable,
    hasher: FieldHasher,
) -> int:
    """
    Compute the root by literally padding the leaf layer to 2^depth.

    Only practical for small depths; used to cross-check build_snapshot().

    Raises:
        ValueError: If depth exceeds DENSE_REBUILD_MAX_DEPTH
        TreeFullError: If there are more than 2^depth leaves
    """
    depth = zeros.depth
    if depth > DENSE_REBUILD_MAX_DEPTH:
        raise ValueError(
            f"Dense rebuild limited to depth {DENSE_REBUILD_MAX_DEPTH}, got {depth}"
        )
    capacity = 1 << depth
    if len(leaves) > capacity:
        raise TreeFullError(depth, len(leaves))

    current = [to_field(leaf) for leaf in leaves]
    current.extend([zeros[0]] * (capacity - len(current)))

    for _ in range(depth):
        current = [
            hasher.hash_pair(current[i], current[i + 1])
            for i in range(0, len(current), 2)
        ]
    return current[0]


def build_naive_root(
    leaves: Sequence[int],
    zero_value: int,
    hasher: FieldHasher,
) -> int:
    """
    Per-level "pad to next even" root. Regression reference only.

    Pads an odd level with the leaf zero value and stops as soon as a
    single node remains, so it disagrees with the accumulator.
    """
    if not leaves:
        return to_field(zero_value)

    current = [to_field(leaf) for leaf in leaves]
    while len(current) > 1:
        if len(current) % 2 == 1:
            current.append(zero_value)
        current = [
            hasher.hash_pair(current[i], current[i + 1])
            for i in range(0, len(current), 2)
        ]
    return current[0]


def assert_reconstruction_matches(
    snapshot: TreeSnapshot,
    authoritative_root: int,
    *,
    source: str = "accumulator",
) -> None:
    """
    Compare a reconstructed root with the authoritative one.

    Raises:
        ReconstructionMismatchError: If they differ. This is an integrity
            fault and must not be retried.
    """
    if snapshot.root == authoritative_root:
        return

    expected = field_to_hex(authoritative_root)
    actual = field_to_hex(snapshot.root)
    logger.error(
        f"Reconstruction mismatch against {source}: leaves={snapshot.leaf_count} "
        f"depth={snapshot.depth} expected={expected} actual={actual}"
    )
    raise ReconstructionMismatchError(
        expected_root=expected,
        actual_root=actual,
        details={"source": source, "leaf_count": snapshot.leaf_count, "depth": snapshot.depth},
    )


__all__ = [
    "DENSE_REBUILD_MAX_DEPTH",
    "TreeSnapshot",
    "build_snapshot",
    "snapshot_from_config",
    "build_dense_root",
    "build_naive_root",
    "assert_reconstruction_matches",
]
