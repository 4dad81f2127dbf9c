"""
CLI Consistency Check

Replays the leaf log through a fresh IncrementalAccumulator and checks
that every party would agree:

1. accumulator_replay  - rebuilt snapshot root == replayed accumulator root
2. dense_rebuild       - literal 2^depth padding gives the same root (small depths)
3. expected_root       - root == --expected (e.g. the on-chain root), if given
4. membership_proofs   - a fresh proof for every leaf (or --sample N) verifies

Usage:
    pool check --leaves deposits.json [--expected ROOT] [--sample N] [--json]
"""

from __future__ import annotations

import logging
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from typing import Any

from core.crypto.hashing import field_to_hex, to_field
from core.merkle.accumulator import IncrementalAccumulator
from core.merkle.merkle_proofs import MerkleVerifier, prove_membership
from core.merkle.merkle_tree import DENSE_REBUILD_MAX_DEPTH, build_dense_root, build_snapshot
from core.pool.root_history import RootHistory
from pool_cli.commands.common import (
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    build_indexer,
    print_json,
)


logger = logging.getLogger(__name__)


@dataclass
class CheckSummary:
    """Summary of a consistency check for CLI output."""
    leaf_count: int = 0
    root: str = ""
    checks: list[dict[str, Any]] = field(default_factory=list)

    def add(self, check_id: str, ok: bool, message: str) -> None:
        self.checks.append({"check_id": check_id, "ok": ok, "message": message})

    @property
    def all_ok(self) -> bool:
        return all(c["ok"] for c in self.checks)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["ok"] = self.all_ok
        return d


def check_cmd(args: Namespace) -> int:
    """Run the consistency checks over the configured leaf log."""
    config = args.cli_config
    indexer = build_indexer(config)
    hasher = indexer.hasher

    events = indexer.source.fetch_validated()
    leaves = [event.commitment for event in events]

    history = RootHistory()
    accumulator = IncrementalAccumulator(config.tree, hasher, history)
    for leaf in leaves:
        accumulator.insert(leaf)

    snapshot = build_snapshot(leaves, indexer.zeros, hasher)
    summary = CheckSummary(leaf_count=len(leaves), root=field_to_hex(snapshot.root))

    summary.add(
        "accumulator_replay",
        snapshot.root == accumulator.root,
        f"accumulator root {field_to_hex(accumulator.root)}",
    )

    if config.tree.depth <= DENSE_REBUILD_MAX_DEPTH:
        dense = build_dense_root(leaves, indexer.zeros, hasher)
        summary.add("dense_rebuild", dense == snapshot.root, f"dense root {field_to_hex(dense)}")

    if args.expected:
        expected = to_field(args.expected)
        summary.add(
            "expected_root",
            expected == snapshot.root,
            f"expected {field_to_hex(expected)}",
        )

    count = len(leaves) if args.sample is None else min(args.sample, len(leaves))
    verifier = MerkleVerifier(hasher, config.tree.depth)
    failed = [
        i for i in range(count)
        if not verifier.verify(prove_membership(snapshot, i), accumulator.root)
    ]
    summary.add(
        "membership_proofs",
        not failed,
        f"{count - len(failed)}/{count} proofs verify"
        + (f"; first failure at leaf {failed[0]}" if failed else ""),
    )

    for check in summary.checks:
        if not check["ok"]:
            logger.error(f"Check {check['check_id']} failed: {check['message']}")

    if args.json:
        print_json(summary.to_dict())
    else:
        print(f"Leaves: {summary.leaf_count}")
        print(f"Root:   {summary.root}")
        for check in summary.checks:
            mark = "PASS" if check["ok"] else "FAIL"
            print(f"  [{mark}] {check['check_id']}: {check['message']}")

    return EXIT_SUCCESS if summary.all_ok else EXIT_VERIFICATION_FAILED
