"""
Membership Proof Unit Tests
Tests for core/merkle/merkle_proofs.py

1. Fresh proofs verify for every leaf against the current root
2. Concrete depth-4 scenario (leaves A, B, C)
3. Proofs taken before later insertions verify only against the old root
4. Swapping operand order at any single level breaks a valid proof
5. Tampering and malformed input verify as False
"""
import pytest
from pydantic import ValidationError

from core.crypto.hashing import FIELD_MODULUS, create_hasher, field_to_hex
from core.merkle.accumulator import IncrementalAccumulator
from core.merkle.merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
    fold_path,
    prove_membership,
    verify_membership,
)
from core.merkle.merkle_tree import build_snapshot
from core.pool.root_history import RootHistory
from core.schemas.errors import ErrorCodes, LeafIndexError, LeafLogError
from core.schemas.proof import MembershipProof

from fixtures.common import make_commitments


@pytest.fixture
def accumulator(tree_config, hasher):
    return IncrementalAccumulator(tree_config, hasher, RootHistory())


def _insert_all(accumulator, commitments):
    for commitment in commitments:
        accumulator.insert(commitment)
    return build_snapshot(commitments, accumulator.zeros, accumulator.hasher)


class TestFreshProofs:
    """Every proof built from the full leaf list verifies."""

    @pytest.mark.parametrize("count", [1, 2, 3, 5, 8, 9, 16])
    def test_all_leaves_verify(self, accumulator, hasher, count):
        commitments = make_commitments(count, hasher)
        snapshot = _insert_all(accumulator, commitments)
        for i in range(count):
            proof = prove_membership(snapshot, i)
            assert proof.root == accumulator.root
            assert verify_membership(
                hasher, proof.leaf, accumulator.root, proof.path_elements, proof.path_indices
            )

    def test_path_indices_encode_leaf_index(self, accumulator, hasher):
        snapshot = _insert_all(accumulator, make_commitments(11, hasher))
        proof = prove_membership(snapshot, 10)
        assert proof.path_indices == [0, 1, 0, 1]
        assert proof.depth == 4


class TestDepthFourScenario:
    """Leaves A, B, C inserted into a depth-4 tree."""

    def test_leaf_zero_alone(self, accumulator, hasher):
        """With only A, leaf 0's sibling is zeros[0]."""
        a = make_commitments(1, hasher)[0]
        snapshot = _insert_all(accumulator, [a])
        proof = prove_membership(snapshot, 0)
        assert proof.path_indices == [0, 0, 0, 0]
        assert proof.path_elements[0] == accumulator.zeros[0]
        assert proof.path_elements[1:] == [accumulator.zeros[1], accumulator.zeros[2], accumulator.zeros[3]]

    def test_leaf_zero_after_b(self, accumulator, hasher):
        """After B is inserted, leaf 0's sibling is B."""
        a, b = make_commitments(2, hasher)
        snapshot = _insert_all(accumulator, [a, b])
        proof = prove_membership(snapshot, 0)
        assert proof.path_elements[0] == b

    def test_leaf_two(self, accumulator, hasher):
        """Leaf 2 (C) has path indices [0, 1, 0, 0] and sibling H(A, B) at level 1."""
        a, b, c = make_commitments(3, hasher)
        snapshot = _insert_all(accumulator, [a, b, c])
        proof = prove_membership(snapshot, 2)
        assert proof.path_indices == [0, 1, 0, 0]
        assert proof.path_elements[0] == accumulator.zeros[0]
        assert proof.path_elements[1] == hasher.hash_pair(a, b)
        assert MerkleVerifier(hasher).verify(proof, accumulator.root)

    def test_all_three_verify(self, accumulator, hasher):
        snapshot = _insert_all(accumulator, make_commitments(3, hasher))
        prover = MerkleProver(snapshot)
        verifier = MerkleVerifier(hasher)
        assert all(verifier.verify(prover.prove(i), accumulator.root) for i in range(3))


class TestStaleProofs:
    """Proofs from an older snapshot."""

    def test_old_proof_fails_against_new_root(self, accumulator, hasher):
        a, b = make_commitments(2, hasher)
        old_snapshot = _insert_all(accumulator, [a])
        old_proof = prove_membership(old_snapshot, 0)
        old_root = accumulator.root

        accumulator.insert(b)
        verifier = MerkleVerifier(hasher)
        assert not verifier.verify(old_proof, accumulator.root)
        assert verifier.verify(old_proof, old_root)
        assert accumulator.root_history.is_known(old_root)


class TestOperandOrder:
    """Regression: the path bit selects operand order at every level."""

    def test_swapping_any_single_level_breaks_proof(self, accumulator, hasher):
        snapshot = _insert_all(accumulator, make_commitments(6, hasher))
        proof = prove_membership(snapshot, 5)
        for level in range(proof.depth):
            flipped = list(proof.path_indices)
            flipped[level] ^= 1
            assert not verify_membership(
                hasher, proof.leaf, accumulator.root, proof.path_elements, flipped
            ), f"swap at level {level} still verified"

    def test_zeroing_instead_of_swapping_breaks_proof(self, accumulator, hasher):
        """Multiplying an operand by the bit produces a different root."""
        snapshot = _insert_all(accumulator, make_commitments(4, hasher))
        proof = prove_membership(snapshot, 3)
        acc = proof.leaf
        for sibling, bit in zip(proof.path_elements, proof.path_indices):
            acc = hasher.hash_pair(acc, sibling * bit)
        assert acc != accumulator.root


class TestTamperDetection:
    """Tampered or malformed proofs verify as False."""

    @pytest.fixture
    def proof_and_root(self, accumulator, hasher):
        snapshot = _insert_all(accumulator, make_commitments(5, hasher))
        return prove_membership(snapshot, 2), accumulator.root

    def test_tampered_sibling(self, hasher, proof_and_root):
        proof, root = proof_and_root
        elements = list(proof.path_elements)
        elements[2] = (elements[2] + 1) % FIELD_MODULUS
        assert not verify_membership(hasher, proof.leaf, root, elements, proof.path_indices)

    def test_tampered_leaf(self, hasher, proof_and_root):
        proof, root = proof_and_root
        assert not verify_membership(hasher, proof.leaf + 1, root, proof.path_elements, proof.path_indices)

    def test_tampered_root(self, hasher, proof_and_root):
        proof, root = proof_and_root
        assert not MerkleVerifier(hasher).verify(proof, root + 1)

    def test_length_mismatch(self, hasher, proof_and_root):
        proof, root = proof_and_root
        assert not verify_membership(hasher, proof.leaf, root, proof.path_elements, proof.path_indices[:-1])

    def test_empty_path(self, hasher, proof_and_root):
        proof, root = proof_and_root
        assert not verify_membership(hasher, proof.leaf, root, [], [])

    def test_internal_node_with_truncated_path(self, hasher, tree_config, proof_and_root):
        """A level-1 node folds to the root on a shortened path but is no leaf."""
        proof, root = proof_and_root
        node = hasher.hash_pair(proof.leaf, proof.path_elements[0])
        elements, indices = proof.path_elements[1:], proof.path_indices[1:]
        assert verify_membership(hasher, node, root, elements, indices)
        assert not verify_membership(hasher, node, root, elements, indices, tree_config.depth)
        assert not MerkleVerifier(hasher, tree_config.depth).verify_leaf_in_root(
            node, root, elements, indices
        )

    def test_extended_path(self, hasher, tree_config, proof_and_root):
        proof, _ = proof_and_root
        elements = [*proof.path_elements, 7]
        indices = [*proof.path_indices, 0]
        extended_root = fold_path(hasher, proof.leaf, elements, indices)
        verifier = MerkleVerifier(hasher, tree_config.depth)
        assert not verifier.verify_leaf_in_root(proof.leaf, extended_root, elements, indices)

    def test_exact_depth_accepted(self, hasher, tree_config, proof_and_root):
        proof, root = proof_and_root
        assert MerkleVerifier(hasher, tree_config.depth).verify(proof, root)

    def test_non_bit_index(self, hasher, proof_and_root):
        proof, root = proof_and_root
        indices = list(proof.path_indices)
        indices[0] = 2
        assert not verify_membership(hasher, proof.leaf, root, proof.path_elements, indices)

    def test_fold_path_rejects_non_bit(self, hasher):
        with pytest.raises(ValueError, match="0 or 1"):
            fold_path(hasher, 1, [2], [3])

    def test_wrong_hasher(self, proof_and_root, hasher):
        """A proof built with one hasher fails under the other."""
        proof, root = proof_and_root
        other = create_hasher("sha256" if hasher.name != "sha256" else "poseidon-simplified")
        assert not MerkleVerifier(other).verify(proof, root)


class TestProver:
    """Tests for prove_membership errors and MerkleProver."""

    def test_index_out_of_range(self, accumulator, hasher):
        snapshot = _insert_all(accumulator, make_commitments(3, hasher))
        with pytest.raises(LeafIndexError) as exc_info:
            prove_membership(snapshot, 3)
        assert isinstance(exc_info.value, IndexError)

    def test_empty_tree_has_no_proofs(self, accumulator):
        snapshot = _insert_all(accumulator, [])
        with pytest.raises(LeafIndexError):
            prove_membership(snapshot, 0)

    def test_prove_commitment(self, accumulator, hasher):
        commitments = make_commitments(4, hasher)
        prover = MerkleProver(_insert_all(accumulator, commitments))
        proof = prover.prove_commitment(commitments[3])
        assert proof.leaf_index == 3
        assert prover.root == accumulator.root

    def test_prove_unknown_commitment(self, accumulator, hasher):
        prover = MerkleProver(_insert_all(accumulator, make_commitments(2, hasher)))
        with pytest.raises(LeafLogError) as exc_info:
            prover.prove_commitment(424242)
        assert exc_info.value.code == ErrorCodes.COMMITMENT_NOT_FOUND
        assert exc_info.value.details["commitment"] == field_to_hex(424242)


class TestProofSchema:
    """MembershipProof validation at the boundary."""

    def test_json_uses_hex(self, accumulator, hasher):
        proof = prove_membership(_insert_all(accumulator, make_commitments(2, hasher)), 1)
        data = proof.model_dump(mode="json")
        assert data["root"].startswith("0x") and len(data["root"]) == 66
        assert MembershipProof.model_validate(data) == proof

    def test_indices_must_match_leaf_index(self):
        with pytest.raises(ValidationError, match="do not encode"):
            MembershipProof(leaf=1, leaf_index=1, path_elements=[2, 3], path_indices=[0, 0], root=4)

    def test_lengths_must_match(self):
        with pytest.raises(ValidationError, match="length"):
            MembershipProof(leaf=1, leaf_index=0, path_elements=[2, 3], path_indices=[0], root=4)

    def test_leaf_index_must_fit_depth(self):
        with pytest.raises(ValidationError, match="does not fit"):
            MembershipProof(leaf=1, leaf_index=4, path_elements=[2, 3], path_indices=[0, 0], root=4)

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            MembershipProof(
                leaf=1, leaf_index=0, path_elements=[2], path_indices=[0], root=4, note="x"
            )
