"""
Pool State
Root history, nullifier set and the settlement authority built on them.

This module provides:
- RootHistory / BoundedRootHistory: roots accepted for withdrawals
- NullifierSet: atomic double-spend guard
- ShieldedPool: deposits and the withdrawal state machine
- ProofChecker: pluggable proof validation for settlement
"""
from .root_history import BoundedRootHistory, RootHistory, create_root_history
from .nullifiers import NullifierSet
from .shielded_pool import ProofChecker, ShieldedPool, TransparentProofChecker


__all__ = [
    "RootHistory",
    "BoundedRootHistory",
    "create_root_history",
    "NullifierSet",
    "ShieldedPool",
    "ProofChecker",
    "TransparentProofChecker",
]
