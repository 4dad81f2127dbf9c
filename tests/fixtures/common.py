"""
Common test fixtures shared by all modules.

Provides factory functions for core pool data structures:
- TreeConfig at small depths
- Commitments and notes
- Populated ShieldedPool instances
- Leaf logs (LeafEvent lists and JSON payloads)
- SettlementRequest for a deposited leaf

Small depths keep dense cross-checks cheap; every factory takes the
hash function so tests can run against both hashers.
"""

from typing import Optional

from core.config.runtime import DEFAULT_ZERO_VALUE, TreeConfig
from core.crypto.hashing import FieldHasher, create_hasher
from core.crypto.notes import Note, compute_commitment, compute_nullifier_hash
from core.pool.shielded_pool import ShieldedPool
from core.schemas.proof import LeafEvent, SettlementRequest


TEST_RECIPIENT = "0x" + "ab" * 20
TEST_AMOUNT = 100_000_000_000_000_000  # 0.1 ETH in wei


# =============================================================================
# TreeConfig Factory
# =============================================================================

def make_tree_config(
    depth: int = 4,
    hash_function: str = "poseidon-simplified",
    zero_value: int = DEFAULT_ZERO_VALUE,
    root_history_window: Optional[int] = None,
) -> TreeConfig:
    """Create a small TreeConfig for testing."""
    return TreeConfig(
        depth=depth,
        zero_value=zero_value,
        hash_function=hash_function,
        root_history_window=root_history_window,
    )


# =============================================================================
# Commitment / Note Factories
# =============================================================================

def make_note(seed: int = 1) -> Note:
    """Deterministic note; seed must be >= 1."""
    return Note(secret=1000 + seed, nullifier=2000 + seed)


def make_commitment(seed: int, hasher: Optional[FieldHasher] = None) -> int:
    """Deterministic commitment derived from make_note(seed)."""
    hasher = hasher or create_hasher("poseidon-simplified")
    return compute_commitment(hasher, make_note(seed).secret, TEST_AMOUNT)


def make_commitments(count: int, hasher: Optional[FieldHasher] = None) -> list[int]:
    """`count` distinct deterministic commitments."""
    return [make_commitment(i + 1, hasher) for i in range(count)]


def make_nullifier_hash(seed: int, hasher: Optional[FieldHasher] = None) -> int:
    hasher = hasher or create_hasher("poseidon-simplified")
    return compute_nullifier_hash(hasher, make_note(seed).secret)


# =============================================================================
# Leaf Log Factories
# =============================================================================

def make_leaf_events(commitments: list[int], start_timestamp: int = 1_700_000_000) -> list[LeafEvent]:
    """Ordered, gap-free leaf log for the given commitments."""
    return [
        LeafEvent(commitment=c, leaf_index=i, timestamp=start_timestamp + i)
        for i, c in enumerate(commitments)
    ]


def make_leaf_log_payload(commitments: list[int]) -> list[dict]:
    """JSON payload in the on-chain Deposit event shape."""
    return [
        event.model_dump(mode="json", by_alias=True)
        for event in make_leaf_events(commitments)
    ]


# =============================================================================
# Pool Factories
# =============================================================================

def make_pool(
    deposits: int = 0,
    config: Optional[TreeConfig] = None,
) -> tuple[ShieldedPool, list[int]]:
    """
    Create a ShieldedPool with `deposits` deterministic deposits.

    Returns:
        (pool, commitments)
    """
    config = config or make_tree_config()
    pool = ShieldedPool(config)
    commitments = make_commitments(deposits, pool.hasher)
    for i, commitment in enumerate(commitments):
        pool.deposit(commitment, timestamp=1_700_000_000 + i)
    return pool, commitments


def make_settlement_request(
    pool: ShieldedPool,
    leaf_index: int,
    seed: Optional[int] = None,
    recipient: str = TEST_RECIPIENT,
) -> SettlementRequest:
    """
    Fresh settlement request for a deposited leaf.

    The nullifier hash is derived from make_note(seed), where seed
    defaults to leaf_index + 1 to match make_pool().
    """
    proof = pool.prove(leaf_index)
    seed = leaf_index + 1 if seed is None else seed
    return SettlementRequest(
        proof=proof,
        root=proof.root,
        nullifier_hash=make_nullifier_hash(seed, pool.hasher),
        recipient=recipient,
    )
