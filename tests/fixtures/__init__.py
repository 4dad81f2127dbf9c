"""
Test fixtures package for pool tests.

This package provides factory functions for creating test objects.

Usage:
    from fixtures import make_pool, make_settlement_request

    def test_something():
        pool, commitments = make_pool(deposits=3)
        request = make_settlement_request(pool, leaf_index=1)
"""

from .common import (
    TEST_AMOUNT,
    TEST_RECIPIENT,
    make_commitment,
    make_commitments,
    make_leaf_events,
    make_leaf_log_payload,
    make_note,
    make_nullifier_hash,
    make_pool,
    make_settlement_request,
    make_tree_config,
)

__all__ = [
    "TEST_AMOUNT",
    "TEST_RECIPIENT",
    "make_commitment",
    "make_commitments",
    "make_leaf_events",
    "make_leaf_log_payload",
    "make_note",
    "make_nullifier_hash",
    "make_pool",
    "make_settlement_request",
    "make_tree_config",
]
