"""
Merkle Accumulator
Append-only fixed-depth Merkle tree, its off-chain reconstruction, and
membership proof generation/verification.

This module provides:
- ZeroTable / compute_zeros: per-level empty-subtree hashes
- IncrementalAccumulator: O(depth) authoritative insertion
- build_snapshot: rebuild the same tree from the ordered leaf log
- prove_membership / verify_membership: path extraction and folding

Canonical Rules:
1. zeros[0] = configured zero value; zeros[l] = H(zeros[l-1], zeros[l-1])
2. The conceptual tree always has 2^depth leaves; unused positions hold zeros[0]
3. Path bit 0: H(acc, sibling); path bit 1: H(sibling, acc)

Usage:
    from core.config import TreeConfig
    from core.merkle import IncrementalAccumulator, snapshot_from_config, prove_membership

    config = TreeConfig(depth=20)
    hasher = config.create_hasher()
    acc = IncrementalAccumulator(config, hasher)
    for c in commitments:
        acc.insert(c)

    snapshot = snapshot_from_config(commitments, config, hasher)
    assert snapshot.root == acc.root
    proof = prove_membership(snapshot, leaf_index=2)
    assert verify_membership(hasher, proof.leaf, acc.root, proof.path_elements, proof.path_indices, 20)
"""
from .zeros import ZeroTable, compute_zeros
from .accumulator import IncrementalAccumulator, InsertResult
from .merkle_tree import (
    TreeSnapshot,
    assert_reconstruction_matches,
    build_dense_root,
    build_naive_root,
    build_snapshot,
    snapshot_from_config,
)
from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
    fold_path,
    prove_membership,
    verify_membership,
)


__all__ = [
    # Zero table
    "ZeroTable",
    "compute_zeros",
    # Accumulator
    "IncrementalAccumulator",
    "InsertResult",
    # Reconstruction
    "TreeSnapshot",
    "assert_reconstruction_matches",
    "build_dense_root",
    "build_naive_root",
    "build_snapshot",
    "snapshot_from_config",
    # Proofs
    "MerkleProver",
    "MerkleVerifier",
    "fold_path",
    "prove_membership",
    "verify_membership",
]
