"""
CLI Tree Commands

Usage:
    pool zeros [--json]
    pool root --leaves deposits.json [--expected ROOT] [--naive] [--json]
"""

from __future__ import annotations

import logging
from argparse import Namespace

from core.crypto.hashing import field_to_hex, to_field
from core.merkle.merkle_tree import build_naive_root
from core.merkle.zeros import ZeroTable
from core.schemas.errors import ReconstructionMismatchError
from pool_cli.commands.common import (
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    build_indexer,
    print_json,
)


logger = logging.getLogger(__name__)


def zeros_cmd(args: Namespace) -> int:
    """Print the zero table for the configured tree."""
    tree = args.cli_config.tree
    table = ZeroTable.build(tree.depth, tree.zero_value, tree.create_hasher())

    if args.json:
        print_json({
            "depth": tree.depth,
            "hash_function": tree.hash_function,
            "zeros": [field_to_hex(z) for z in table.levels],
            "empty_root": field_to_hex(table.empty_root),
        })
        return EXIT_SUCCESS

    print(f"Zero table (depth={tree.depth}, hash={tree.hash_function})")
    for level, value in enumerate(table.levels):
        print(f"  zeros[{level:2d}] = {field_to_hex(value)}")
    print(f"  empty root = {field_to_hex(table.empty_root)}")
    return EXIT_SUCCESS


def root_cmd(args: Namespace) -> int:
    """
    Rebuild the root from the leaf log.

    With --expected, the rebuilt root is compared against an authoritative
    root (e.g. the on-chain getLastRoot()) and a mismatch exits with 2.
    """
    config = args.cli_config
    indexer = build_indexer(config)

    matches = None
    expected = None
    if args.expected:
        expected = to_field(args.expected)
        try:
            snapshot = indexer.cross_check(expected)
            matches = True
        except ReconstructionMismatchError:
            snapshot = indexer.snapshot
            matches = False
    else:
        snapshot = indexer.refresh()

    result = {
        "root": field_to_hex(snapshot.root),
        "leaf_count": snapshot.leaf_count,
        "depth": snapshot.depth,
        "hash_function": config.tree.hash_function,
    }
    if expected is not None:
        result["expected"] = field_to_hex(expected)
        result["matches"] = matches
    if args.naive:
        naive = build_naive_root(snapshot.leaves, config.tree.zero_value, indexer.hasher)
        result["naive_root"] = field_to_hex(naive)

    if args.json:
        print_json(result)
    else:
        print(f"Root:       {result['root']}")
        print(f"Leaves:     {result['leaf_count']}")
        print(f"Depth:      {result['depth']} ({result['hash_function']})")
        if "naive_root" in result:
            print(f"Naive root: {result['naive_root']} (per-level padding, NOT canonical)")
        if expected is not None:
            status = "MATCH" if matches else "MISMATCH"
            print(f"Expected:   {result['expected']} [{status}]")

    if matches is False:
        return EXIT_VERIFICATION_FAILED
    return EXIT_SUCCESS
