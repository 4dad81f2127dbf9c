"""
Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Version constants
from .versioning import (
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    SchemaVersion,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
)

# Error models and exceptions
from .errors import (
    BadProofError,
    DoubleSpendError,
    DuplicateCommitmentError,
    ErrorCodes,
    LeafIndexError,
    LeafLogError,
    PoolError,
    PoolException,
    ReconstructionMismatchError,
    SchemaValidationException,
    StaleRootError,
    TreeFullError,
)

# Proof and settlement schemas
from .proof import (
    FieldElement,
    LeafEvent,
    MembershipProof,
    SettlementRequest,
    SettlementResult,
    WithdrawalStatus,
)


__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "SchemaVersion",
    "UnsupportedSchemaVersionError",
    "assert_supported_schema_version",
    # Errors
    "BadProofError",
    "DoubleSpendError",
    "DuplicateCommitmentError",
    "ErrorCodes",
    "LeafIndexError",
    "LeafLogError",
    "PoolError",
    "PoolException",
    "ReconstructionMismatchError",
    "SchemaValidationException",
    "StaleRootError",
    "TreeFullError",
    # Proofs
    "FieldElement",
    "LeafEvent",
    "MembershipProof",
    "SettlementRequest",
    "SettlementResult",
    "WithdrawalStatus",
]
