"""
Shielded Pool
Settlement authority: owns the accumulator, root history, nullifier set
and the deposit log, and drives the withdrawal state machine.

Withdrawal State Machine:
    Pending --unknown root------> STALE_ROOT    (retryable: refetch + rebuild)
    Pending --proof rejected----> BAD_PROOF
    Pending --nullifier spent---> DOUBLE_SPEND  (never retried)
    Pending --all checks pass---> VALID         (nullifier now spent)

Settlement Ordering (Hard Contract):
1. Root must be in root history
2. Proof must span exactly config.depth levels, and the proof checker
   must accept it against the request root
3. check_and_spend(nullifier_hash) is the LAST step and the only mutation

Any failure before step 3 leaves the nullifier unspent.
"""
from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from core.config.runtime import TreeConfig
from core.crypto.hashing import FieldHasher, field_to_hex, to_field
from core.merkle.accumulator import IncrementalAccumulator
from core.merkle.merkle_proofs import prove_membership, verify_membership
from core.merkle.merkle_tree import (
    TreeSnapshot,
    assert_reconstruction_matches,
    build_snapshot,
)
from core.pool.nullifiers import NullifierSet
from core.pool.root_history import RootHistory, create_root_history
from core.schemas.errors import (
    BadProofError,
    DoubleSpendError,
    DuplicateCommitmentError,
    LeafIndexError,
    PoolException,
    StaleRootError,
)
from core.schemas.proof import (
    LeafEvent,
    MembershipProof,
    SettlementRequest,
    SettlementResult,
    WithdrawalStatus,
)


logger = logging.getLogger(__name__)


class ProofChecker(ABC):
    """
    Validates the proof attached to a settlement request.

    A production deployment plugs a zero-knowledge verifier in here; the
    pool only needs a yes/no answer and never learns which check failed.
    """

    @abstractmethod
    def check(self, request: SettlementRequest) -> bool:
        """Return True if the request's proof is acceptable."""
        ...


class TransparentProofChecker(ProofChecker):
    """
    Checks the membership path in the clear. Development use only.

    The path must span exactly `depth` levels and fold the leaf to the
    request's public root, and the root carried inside the proof must be
    that same root.

    Nothing here binds nullifier_hash to the proven leaf: one valid path
    settles again under every fresh nullifier hash. Only a zero-knowledge
    checker that proves nullifier_hash = H(secret, p - 1) for the leaf's
    secret closes that gap.
    """

    def __init__(self, hasher: FieldHasher, depth: int) -> None:
        self.hasher = hasher
        self.depth = depth

    def check(self, request: SettlementRequest) -> bool:
        proof = request.proof
        if proof.root != request.root:
            return False
        return verify_membership(
            self.hasher,
            proof.leaf,
            request.root,
            proof.path_elements,
            proof.path_indices,
            self.depth,
        )


_STATUS_BY_ERROR: dict[type[PoolException], WithdrawalStatus] = {
    StaleRootError: WithdrawalStatus.STALE_ROOT,
    BadProofError: WithdrawalStatus.BAD_PROOF,
    DoubleSpendError: WithdrawalStatus.DOUBLE_SPEND,
}


class ShieldedPool:
    """
    In-process settlement authority for one pool.

    Insertions and nullifier spends share one re-entrant lock, which gives
    them the single total order a chain would. Root lookups stay lock-free.

    Usage:
        config = TreeConfig(depth=20)
        pool = ShieldedPool(config)
        event = pool.deposit(commitment)
        proof = pool.prove(event.leaf_index)
        result = pool.settle(SettlementRequest(
            proof=proof, root=proof.root,
            nullifier_hash=nh, recipient="0x" + "ab" * 20,
        ))
    """

    def __init__(
        self,
        config: TreeConfig,
        hasher: Optional[FieldHasher] = None,
        proof_checker: Optional[ProofChecker] = None,
    ) -> None:
        self.config = config
        self.hasher = hasher or config.create_hasher()
        self.proof_checker = proof_checker or TransparentProofChecker(self.hasher, config.depth)

        self._lock = threading.RLock()
        self.root_history: RootHistory = create_root_history(config.root_history_window)
        self.accumulator = IncrementalAccumulator(
            config, self.hasher, self.root_history, lock=self._lock
        )
        self.nullifiers = NullifierSet(lock=self._lock)

        self._events: list[LeafEvent] = []
        self._roots_after: list[int] = []
        self._commitments: set[int] = set()

    # -------------------------------------------------------------------------
    # Deposits
    # -------------------------------------------------------------------------

    def deposit(self, commitment: int | str, timestamp: Optional[int] = None) -> LeafEvent:
        """
        Insert a commitment and append it to the deposit log.

        Raises:
            DuplicateCommitmentError: If the commitment is already in the tree
            TreeFullError: If the tree is at capacity
            ValueError: If commitment is not a field element
        """
        value = to_field(commitment)
        with self._lock:
            if value in self._commitments:
                raise DuplicateCommitmentError(field_to_hex(value))
            result = self.accumulator.insert(value)
            event = LeafEvent(
                commitment=value,
                leaf_index=result.leaf_index,
                timestamp=int(time.time()) if timestamp is None else timestamp,
            )
            self._events.append(event)
            self._roots_after.append(result.root)
            self._commitments.add(value)

        logger.info(
            f"Deposit accepted at leaf {event.leaf_index}, root {field_to_hex(result.root)}"
        )
        return event

    def events(self) -> list[LeafEvent]:
        """Copy of the deposit log in insertion order."""
        with self._lock:
            return list(self._events)

    def leaves(self) -> list[int]:
        with self._lock:
            return [event.commitment for event in self._events]

    def root_after(self, leaf_index: int) -> int:
        """Root the accumulator produced when leaf_index was inserted."""
        with self._lock:
            if not 0 <= leaf_index < len(self._roots_after):
                raise LeafIndexError(leaf_index, len(self._roots_after))
            return self._roots_after[leaf_index]

    # -------------------------------------------------------------------------
    # Tree state
    # -------------------------------------------------------------------------

    @property
    def current_root(self) -> int:
        return self.accumulator.root

    @property
    def next_index(self) -> int:
        return self.accumulator.next_index

    def is_known_root(self, root: int | str) -> bool:
        try:
            value = to_field(root)
        except ValueError:
            return False
        return self.root_history.is_known(value)

    def is_spent(self, nullifier_hash: int | str) -> bool:
        return self.nullifiers.is_spent(to_field(nullifier_hash))

    def snapshot(self) -> TreeSnapshot:
        """
        Rebuild the full tree from the deposit log and check it against
        the accumulator.

        Raises:
            ReconstructionMismatchError: If the rebuilt root differs
        """
        with self._lock:
            leaves = [event.commitment for event in self._events]
            root = self.accumulator.root
        snapshot = build_snapshot(leaves, self.accumulator.zeros, self.hasher)
        assert_reconstruction_matches(snapshot, root)
        return snapshot

    def prove(self, leaf_index: int) -> MembershipProof:
        """Build a fresh membership proof against the current root."""
        return prove_membership(self.snapshot(), leaf_index)

    # -------------------------------------------------------------------------
    # Settlement
    # -------------------------------------------------------------------------

    def settle(self, request: SettlementRequest) -> SettlementResult:
        """
        Settle a withdrawal.

        Returns:
            SettlementResult with status VALID; the nullifier is now spent

        Raises:
            StaleRootError: Root is not in root history
            BadProofError: Proof checker rejected the proof
            DoubleSpendError: Nullifier already spent
        """
        root_hex = field_to_hex(request.root)

        if not self.root_history.is_known(request.root):
            logger.warning(f"Settlement rejected: unknown root {root_hex}")
            raise StaleRootError(root_hex)

        if request.proof.depth != self.config.depth:
            logger.warning(
                f"Settlement rejected: proof spans {request.proof.depth} levels, "
                f"tree has {self.config.depth}"
            )
            raise BadProofError()

        if not self.proof_checker.check(request):
            logger.warning("Settlement rejected: proof check failed")
            raise BadProofError()

        with self._lock:
            # A bounded history may have evicted the root since the first check.
            if not self.root_history.is_known(request.root):
                logger.warning(f"Settlement rejected: root {root_hex} evicted")
                raise StaleRootError(root_hex)
            try:
                self.nullifiers.check_and_spend(request.nullifier_hash)
            except DoubleSpendError:
                logger.warning(
                    f"Settlement rejected: nullifier {field_to_hex(request.nullifier_hash)} already spent"
                )
                raise

        logger.info(f"Settlement accepted for {request.recipient} against root {root_hex}")
        return SettlementResult(
            status=WithdrawalStatus.VALID,
            root=request.root,
            nullifier_hash=request.nullifier_hash,
            recipient=request.recipient,
            settled_at=datetime.now(timezone.utc),
        )

    def evaluate(self, request: SettlementRequest) -> SettlementResult:
        """
        Settle a withdrawal and report the terminal state instead of raising.

        Only the three settlement rejections are mapped to a status; any
        other error propagates.
        """
        try:
            return self.settle(request)
        except (StaleRootError, BadProofError, DoubleSpendError) as e:
            return SettlementResult(
                status=_STATUS_BY_ERROR[type(e)],
                root=request.root,
                nullifier_hash=request.nullifier_hash,
                recipient=request.recipient,
            )

    def __repr__(self) -> str:
        return (
            f"ShieldedPool(depth={self.config.depth}, leaves={self.next_index}, "
            f"spent={len(self.nullifiers)})"
        )


__all__ = ["ProofChecker", "TransparentProofChecker", "ShieldedPool"]
