"""
API Response Models

Pydantic models for API response serialization. Field elements are
rendered as 0x-prefixed 32-byte hex strings.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from core.schemas.proof import FieldElement, LeafEvent, MembershipProof, SettlementResult


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "privacy-pool-api"
    version: str = "v1"


class TreeResponse(BaseModel):
    """Response for GET /tree: current accumulator state and parameters."""

    ok: bool = True
    depth: int
    zero_value: FieldElement
    hash_function: str
    root: FieldElement = Field(..., description="Current accumulator root")
    next_index: int = Field(..., description="Leaf index the next deposit will get")
    capacity: int
    root_history_window: Optional[int] = Field(
        default=None,
        description="Ring buffer size; null means every root is kept",
    )
    known_roots: int = Field(..., description="Roots currently accepted for withdrawals")


class LeavesResponse(BaseModel):
    """Response for GET /tree/leaves: the deposit log."""

    ok: bool = True
    count: int
    events: list[LeafEvent] = Field(default_factory=list)


class RootStatusResponse(BaseModel):
    """Response for GET /roots/{root}."""

    ok: bool = True
    root: FieldElement
    known: bool
    is_current: bool


class DepositResponse(BaseModel):
    """Response for POST /deposit."""

    ok: bool = True
    event: LeafEvent
    root: FieldElement = Field(..., description="Root after the insertion")


class ProofResponse(BaseModel):
    """Response for GET /proof/{leaf_index}."""

    ok: bool = True
    proof: MembershipProof


class VerifyResponse(BaseModel):
    """Response for POST /verify."""

    ok: bool = True
    valid: bool = Field(..., description="Whether the path folds to the root")
    root: FieldElement
    known_root: bool = Field(..., description="Whether the root is in root history")


class NullifierResponse(BaseModel):
    """Response for GET /nullifiers/{nullifier_hash}."""

    ok: bool = True
    nullifier_hash: FieldElement
    spent: bool


class SettleResponse(BaseModel):
    """Response for POST /settle."""

    ok: bool = True
    result: SettlementResult


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
