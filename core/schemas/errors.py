"""
Schemas
File: errors.py

Purpose: Standard error taxonomy for the shielded pool.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the pool."""

    # Schema & Validation Errors
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"

    # Accumulator Errors
    TREE_FULL = "TREE_FULL"
    LEAF_INDEX_OUT_OF_RANGE = "LEAF_INDEX_OUT_OF_RANGE"
    RECONSTRUCTION_MISMATCH = "RECONSTRUCTION_MISMATCH"

    # Settlement Errors
    STALE_ROOT = "STALE_ROOT"
    DOUBLE_SPEND = "DOUBLE_SPEND"
    BAD_PROOF = "BAD_PROOF"

    # Deposit Errors
    DUPLICATE_COMMITMENT = "DUPLICATE_COMMITMENT"

    # Leaf Log Errors
    LEAF_LOG_INVALID = "LEAF_LOG_INVALID"
    LEAF_LOG_UNAVAILABLE = "LEAF_LOG_UNAVAILABLE"
    COMMITMENT_NOT_FOUND = "COMMITMENT_NOT_FOUND"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class PoolError(BaseModel):
    """
    Base error model for structured error communication.

    Used when errors cross a process boundary (HTTP responses, CLI JSON
    output) instead of being raised.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.STALE_ROOT],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "PoolException":
        """Convert this error model to a raised exception."""
        return PoolException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class PoolException(Exception):
    """
    Base exception for all shielded pool errors.

    Carries structured error information and can be converted
    to/from PoolError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "POOL_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> PoolError:
        """Convert this exception to a PoolError model."""
        return PoolError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class SchemaValidationException(PoolException):
    """Exception raised when schema validation fails."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=ErrorCodes.SCHEMA_VALIDATION_ERROR,
            details=full_details,
            retryable=False,
        )


class TreeFullError(PoolException):
    """
    Raised when an insertion would exceed the 2^depth leaf capacity.

    Fatal: only a redeployment at a larger depth resolves it.
    """

    def __init__(self, depth: int, next_index: int) -> None:
        super().__init__(
            message=f"Merkle tree is full (depth={depth}, capacity={1 << depth})",
            code=ErrorCodes.TREE_FULL,
            details={"depth": depth, "next_index": next_index},
            retryable=False,
        )


class LeafIndexError(PoolException, IndexError):
    """Raised when a proof is requested for a leaf that does not exist."""

    def __init__(self, leaf_index: int, leaf_count: int) -> None:
        super().__init__(
            message=f"Leaf index {leaf_index} out of range for {leaf_count} leaves",
            code=ErrorCodes.LEAF_INDEX_OUT_OF_RANGE,
            details={"leaf_index": leaf_index, "leaf_count": leaf_count},
            retryable=False,
        )


class StaleRootError(PoolException):
    """
    Raised when a proof references a root that was never recorded.

    The caller should refetch the leaf log and rebuild a fresh proof.
    """

    def __init__(self, root: str, details: dict[str, Any] | None = None) -> None:
        full_details = details or {}
        full_details["root"] = root
        super().__init__(
            message="Unknown Merkle root; refetch the leaf log and rebuild the proof",
            code=ErrorCodes.STALE_ROOT,
            details=full_details,
            retryable=True,
        )


class DoubleSpendError(PoolException):
    """Raised when a nullifier hash has already been spent. Never retried."""

    def __init__(self, nullifier_hash: str) -> None:
        super().__init__(
            message="Nullifier has already been spent",
            code=ErrorCodes.DOUBLE_SPEND,
            details={"nullifier_hash": nullifier_hash},
            retryable=False,
        )


class BadProofError(PoolException):
    """Raised when a proof does not fold to the claimed root."""

    def __init__(self, message: str = "Invalid membership proof") -> None:
        # No details: which level failed is deliberately not reported.
        super().__init__(
            message=message,
            code=ErrorCodes.BAD_PROOF,
            retryable=False,
        )


class ReconstructionMismatchError(PoolException):
    """
    Raised when a reconstructed root disagrees with the authoritative root.

    Indicates an implementation or configuration fault (depth, zero value
    or hash function differ between parties). Processing must halt.
    """

    def __init__(
        self,
        expected_root: str,
        actual_root: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        full_details["expected_root"] = expected_root
        full_details["actual_root"] = actual_root
        super().__init__(
            message=(
                f"Reconstructed root {actual_root} does not match "
                f"authoritative root {expected_root}"
            ),
            code=ErrorCodes.RECONSTRUCTION_MISMATCH,
            details=full_details,
            retryable=False,
        )


class LeafLogError(PoolException):
    """Raised when the leaf log has gaps, is reordered, or cannot be fetched."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.LEAF_LOG_INVALID,
        details: dict[str, Any] | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details=details,
            retryable=retryable,
        )


class DuplicateCommitmentError(PoolException):
    """Raised when a deposit reuses a commitment already in the tree."""

    def __init__(self, commitment: str) -> None:
        super().__init__(
            message="Commitment has already been deposited",
            code=ErrorCodes.DUPLICATE_COMMITMENT,
            details={"commitment": commitment},
            retryable=False,
        )
