"""
Zero Table
Per-level hashes of empty subtrees.

zeros[0] is the configured empty-leaf value; zeros[l] = H(zeros[l-1], zeros[l-1]).
The root of a tree with no leaves is H(zeros[D-1], zeros[D-1]).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from core.crypto.hashing import FieldHasher, to_field


def compute_zeros(depth: int, zero_value: int, hasher: FieldHasher) -> list[int]:
    """
    Compute the empty-subtree hash for each level 0..depth-1.

    Pure and deterministic in (depth, zero_value, hasher).

    Args:
        depth: Tree depth D (>= 1)
        zero_value: Level-0 empty leaf value
        hasher: Two-to-one hash function

    Returns:
        List of D field elements
    """
    if depth < 1:
        raise ValueError(f"Tree depth must be >= 1, got {depth}")

    zeros = [to_field(zero_value)]
    for _ in range(1, depth):
        zeros.append(hasher.hash_pair(zeros[-1], zeros[-1]))
    return zeros


@dataclass(frozen=True)
class ZeroTable:
    """Immutable zero table bound to the hasher it was derived with."""
    levels: tuple[int, ...]
    empty_root: int

    @classmethod
    def build(cls, depth: int, zero_value: int, hasher: FieldHasher) -> "ZeroTable":
        levels = compute_zeros(depth, zero_value, hasher)
        return cls(
            levels=tuple(levels),
            empty_root=hasher.hash_pair(levels[-1], levels[-1]),
        )

    @property
    def depth(self) -> int:
        return len(self.levels)

    def __getitem__(self, level: int) -> int:
        return self.levels[level]

    def __len__(self) -> int:
        return len(self.levels)

    def as_list(self) -> list[int]:
        return list(self.levels)

    def matches(self, other: Sequence[int]) -> bool:
        """Check another party's table against this one."""
        return tuple(other) == self.levels


__all__ = ["compute_zeros", "ZeroTable"]
