"""
Indexer
Off-chain reconstruction of the deposit tree.

Pipeline:
    source.fetch() -> validate_leaf_log() -> build_snapshot()
        -> (optional) cross-check against the authoritative root

The indexer never keeps per-leaf insertion traces. Every proof is built
from a snapshot of ALL leaves fetched at proof time, so it verifies
against the current root (and, while that root stays in history, for
some time after).
"""
from __future__ import annotations

import logging
from typing import Optional

from core.config.runtime import TreeConfig
from core.crypto.hashing import FieldHasher, field_to_hex, to_field
from core.ledger.log_source import LeafLogSource
from core.merkle.merkle_proofs import prove_membership
from core.merkle.merkle_tree import TreeSnapshot, assert_reconstruction_matches, build_snapshot
from core.merkle.zeros import ZeroTable
from core.schemas.errors import ErrorCodes, LeafLogError
from core.schemas.proof import LeafEvent, MembershipProof


logger = logging.getLogger(__name__)


class Indexer:
    """
    Rebuilds the tree from a leaf log source.

    Usage:
        indexer = Indexer(config, config.create_hasher(), JsonFileLeafLog("deposits.json"))
        snapshot = indexer.refresh()
        indexer.cross_check(onchain_root)
        proof = indexer.prove_commitment(my_commitment)
    """

    def __init__(
        self,
        config: TreeConfig,
        hasher: FieldHasher,
        source: LeafLogSource,
    ) -> None:
        self.config = config
        self.hasher = hasher
        self.source = source
        self.zeros = ZeroTable.build(config.depth, config.zero_value, hasher)
        self._events: list[LeafEvent] = []
        self._snapshot: Optional[TreeSnapshot] = None

    @property
    def events(self) -> list[LeafEvent]:
        return list(self._events)

    @property
    def snapshot(self) -> TreeSnapshot:
        """Latest snapshot, fetching the log on first access."""
        if self._snapshot is None:
            return self.refresh()
        return self._snapshot

    def refresh(self) -> TreeSnapshot:
        """
        Fetch and validate the full log, then rebuild the snapshot.

        Raises:
            LeafLogError: If the log cannot be fetched or is inconsistent
            TreeFullError: If the log holds more than 2^depth leaves
        """
        events = self.source.fetch_validated()
        snapshot = build_snapshot(
            [event.commitment for event in events], self.zeros, self.hasher
        )
        self._events = events
        self._snapshot = snapshot
        logger.info(
            f"Rebuilt tree from {len(events)} leaves, root {field_to_hex(snapshot.root)}"
        )
        return snapshot

    def cross_check(self, authoritative_root: int | str) -> TreeSnapshot:
        """
        Refresh and confirm the rebuilt root equals the authoritative one.

        Raises:
            ReconstructionMismatchError: On any disagreement; processing
                must stop until configuration is fixed
        """
        snapshot = self.refresh()
        assert_reconstruction_matches(snapshot, to_field(authoritative_root), source="indexer")
        return snapshot

    def locate(self, commitment: int | str) -> int:
        """
        Leaf index of a commitment in the current snapshot.

        Raises:
            LeafLogError: If the commitment has not been deposited
        """
        value = to_field(commitment)
        leaf_index = self.snapshot.index_of(value)
        if leaf_index is None:
            raise LeafLogError(
                "Commitment not found in the leaf log",
                code=ErrorCodes.COMMITMENT_NOT_FOUND,
                details={"commitment": field_to_hex(value)},
                retryable=True,
            )
        return leaf_index

    def prove(self, leaf_index: int, refresh: bool = True) -> MembershipProof:
        """Fresh proof for a leaf; refetches the log first unless told not to."""
        snapshot = self.refresh() if refresh else self.snapshot
        return prove_membership(snapshot, leaf_index)

    def prove_commitment(self, commitment: int | str, refresh: bool = True) -> MembershipProof:
        if refresh:
            self.refresh()
        return prove_membership(self.snapshot, self.locate(commitment))


__all__ = ["Indexer"]
