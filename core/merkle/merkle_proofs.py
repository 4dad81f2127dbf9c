"""
Membership Proofs
Path extraction from a tree snapshot and the canonical folding check.

Folding Convention (must be identical inside the withdraw circuit):
    acc = leaf
    for level in 0..depth-1:
        bit 0 -> acc = H(acc, sibling)    current node is the left child
        bit 1 -> acc = H(sibling, acc)    current node is the right child
    valid iff acc == root

The path bit SELECTS operand order. It never zeroes an operand; a
circuit that multiplies one input by the bit instead of swapping
produces roots that no accumulator will ever emit.

Freshness:
- Proofs are built from a snapshot of ALL current leaves. A path taken
  from a leaf's own insertion trace goes stale as soon as a later leaf
  changes a shared ancestor's sibling.
"""
from __future__ import annotations

from typing import Optional, Sequence

from core.crypto.hashing import FieldHasher, field_to_hex, is_field_element
from core.merkle.merkle_tree import TreeSnapshot
from core.schemas.errors import ErrorCodes, LeafIndexError, LeafLogError
from core.schemas.proof import MembershipProof


def prove_membership(snapshot: TreeSnapshot, leaf_index: int) -> MembershipProof:
    """
    Extract the membership path for a leaf.

    Args:
        snapshot: Snapshot built from the full, current leaf list
        leaf_index: Index of the leaf to prove

    Returns:
        MembershipProof against snapshot.root

    Raises:
        LeafIndexError: If leaf_index >= snapshot.leaf_count
    """
    if not 0 <= leaf_index < snapshot.leaf_count:
        raise LeafIndexError(leaf_index, snapshot.leaf_count)

    path_elements: list[int] = []
    path_indices: list[int] = []
    idx = leaf_index

    for level in range(snapshot.depth):
        if idx % 2 == 0:
            path_elements.append(snapshot.node_at(level, idx + 1))
            path_indices.append(0)
        else:
            path_elements.append(snapshot.node_at(level, idx - 1))
            path_indices.append(1)
        idx //= 2

    return MembershipProof(
        leaf=snapshot.leaves[leaf_index],
        leaf_index=leaf_index,
        path_elements=path_elements,
        path_indices=path_indices,
        root=snapshot.root,
    )


def fold_path(
    hasher: FieldHasher,
    leaf: int,
    path_elements: Sequence[int],
    path_indices: Sequence[int],
) -> int:
    """
    Fold a leaf up its path and return the resulting root.

    Raises:
        ValueError: If the path is malformed (length mismatch, non-bit
            index, or non-field element)
    """
    if len(path_elements) != len(path_indices):
        raise ValueError(
            f"path_elements ({len(path_elements)}) and path_indices "
            f"({len(path_indices)}) differ in length"
        )

    acc = leaf
    for sibling, bit in zip(path_elements, path_indices):
        if bit == 0:
            acc = hasher.hash_pair(acc, sibling)
        elif bit == 1:
            acc = hasher.hash_pair(sibling, acc)
        else:
            raise ValueError(f"Path index must be 0 or 1, got {bit!r}")
    return acc


def verify_membership(
    hasher: FieldHasher,
    leaf: int,
    root: int,
    path_elements: Sequence[int],
    path_indices: Sequence[int],
    depth: Optional[int] = None,
) -> bool:
    """
    Check that a leaf folds to root along the given path.

    Pure and side-effect free. Malformed input verifies as False rather
    than raising, and the failing level is never reported.

    Args:
        depth: Tree depth the path must span exactly. A shorter path
            would let an internal node pass as a leaf.

    Returns:
        True if the path folds exactly to root
    """
    if not path_elements or not is_field_element(leaf) or not is_field_element(root):
        return False
    if depth is not None and len(path_elements) != depth:
        return False
    try:
        return fold_path(hasher, leaf, path_elements, path_indices) == root
    except ValueError:
        return False


class MerkleProver:
    """
    Proof builder bound to a snapshot.

    Example:
        >>> prover = MerkleProver(snapshot)
        >>> proof = prover.prove(2)
        >>> proof.path_indices[:2]
        [0, 1]
    """

    def __init__(self, snapshot: TreeSnapshot) -> None:
        self.snapshot = snapshot

    @property
    def root(self) -> int:
        return self.snapshot.root

    def prove(self, leaf_index: int) -> MembershipProof:
        """Build a membership proof for the leaf at leaf_index."""
        return prove_membership(self.snapshot, leaf_index)

    def prove_commitment(self, commitment: int) -> MembershipProof:
        """
        Build a membership proof for a commitment by value.

        Raises:
            LeafLogError: COMMITMENT_NOT_FOUND if the commitment is not in
                the snapshot
        """
        leaf_index = self.snapshot.index_of(commitment)
        if leaf_index is None:
            raise LeafLogError(
                "Commitment not found in the snapshot",
                code=ErrorCodes.COMMITMENT_NOT_FOUND,
                details={"commitment": field_to_hex(commitment)},
                retryable=True,
            )
        return prove_membership(self.snapshot, leaf_index)


class MerkleVerifier:
    """
    Membership verifier bound to a hasher and, optionally, a tree depth.

    Example:
        >>> verifier = MerkleVerifier(hasher, depth=20)
        >>> verifier.verify(proof)
        True
    """

    def __init__(self, hasher: FieldHasher, depth: Optional[int] = None) -> None:
        self.hasher = hasher
        self.depth = depth

    def verify(self, proof: MembershipProof, root: int | None = None) -> bool:
        """
        Verify a proof against root (defaults to the root carried in the proof).
        """
        target = proof.root if root is None else root
        return verify_membership(
            self.hasher,
            proof.leaf,
            target,
            proof.path_elements,
            proof.path_indices,
            self.depth,
        )

    def verify_leaf_in_root(
        self,
        leaf: int,
        root: int,
        path_elements: Sequence[int],
        path_indices: Sequence[int],
    ) -> bool:
        """Verify raw components without building a MembershipProof."""
        return verify_membership(
            self.hasher, leaf, root, path_elements, path_indices, self.depth
        )


__all__ = [
    "prove_membership",
    "fold_path",
    "verify_membership",
    "MerkleProver",
    "MerkleVerifier",
]
