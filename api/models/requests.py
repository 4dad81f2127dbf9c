"""
API Request Models

Pydantic models for API request validation. POST /settle takes
core.schemas.proof.SettlementRequest directly.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.schemas.proof import FieldElement, MembershipProof


class DepositRequest(BaseModel):
    """Request body for POST /deposit endpoint."""

    model_config = ConfigDict(extra="forbid")

    commitment: FieldElement = Field(
        ...,
        description="Commitment as 0x hex or decimal string",
    )
    timestamp: Optional[int] = Field(
        default=None,
        ge=0,
        description="Deposit time (unix seconds); server time when omitted",
    )


class VerifyProofRequest(BaseModel):
    """Request body for POST /verify endpoint."""

    model_config = ConfigDict(extra="forbid")

    proof: MembershipProof
    root: Optional[FieldElement] = Field(
        default=None,
        description="Root to verify against; defaults to the root in the proof",
    )
