"""
Schemas
File: proof.py

Purpose: Explicit, validated structures for everything that crosses a
boundary: membership proofs, settlement requests/results and leaf log
entries. Field elements are ints in Python and 0x-prefixed 32-byte hex
strings on the wire.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)

from core.crypto.hashing import field_to_hex, to_field

from .versioning import SCHEMA_VERSION, SchemaVersion


FieldElement = Annotated[
    int,
    BeforeValidator(to_field),
    PlainSerializer(field_to_hex, return_type=str, when_used="json"),
]


class MembershipProof(BaseModel):
    """
    A membership path for one leaf.

    path_indices[l] is 0 when the current node is the left child at
    level l and 1 when it is the right child; the bits are the leaf index
    written LSB first.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: SchemaVersion = Field(default=SCHEMA_VERSION)
    leaf: FieldElement = Field(..., description="Commitment being proven")
    leaf_index: int = Field(..., ge=0, lt=1 << 32)
    path_elements: list[FieldElement] = Field(..., min_length=1)
    path_indices: list[int] = Field(..., min_length=1)
    root: FieldElement = Field(..., description="Root of the snapshot the path was built from")

    @field_validator("path_indices")
    @classmethod
    def _bits_only(cls, value: list[int]) -> list[int]:
        if any(bit not in (0, 1) for bit in value):
            raise ValueError("path_indices must contain only 0 or 1")
        return value

    @model_validator(mode="after")
    def _consistent_shape(self) -> "MembershipProof":
        depth = len(self.path_elements)
        if len(self.path_indices) != depth:
            raise ValueError(
                f"path_indices length {len(self.path_indices)} != path_elements length {depth}"
            )
        if self.leaf_index >= (1 << depth):
            raise ValueError(f"leaf_index {self.leaf_index} does not fit in depth {depth}")
        expected = [(self.leaf_index >> level) & 1 for level in range(depth)]
        if self.path_indices != expected:
            raise ValueError("path_indices do not encode leaf_index")
        return self

    @property
    def depth(self) -> int:
        return len(self.path_elements)


class WithdrawalStatus(str, Enum):
    """Terminal states of the withdrawal state machine (Pending is implicit)."""
    PENDING = "PENDING"
    VALID = "VALID"
    STALE_ROOT = "STALE_ROOT"
    BAD_PROOF = "BAD_PROOF"
    DOUBLE_SPEND = "DOUBLE_SPEND"


class SettlementRequest(BaseModel):
    """
    Input to ShieldedPool.settle().

    Public signals are root and nullifier_hash; the proof carries the
    membership path checked by the configured proof checker.
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: SchemaVersion = Field(default=SCHEMA_VERSION)
    proof: MembershipProof
    root: FieldElement
    nullifier_hash: FieldElement
    recipient: str = Field(..., pattern=r"^0x[0-9a-fA-F]{40}$")


class SettlementResult(BaseModel):
    """Outcome of a settlement attempt."""

    model_config = ConfigDict(extra="forbid")

    status: WithdrawalStatus
    root: FieldElement
    nullifier_hash: FieldElement
    recipient: str
    settled_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status == WithdrawalStatus.VALID


class LeafEvent(BaseModel):
    """One entry of the deposit log: (commitment, leaf_index, timestamp)."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    commitment: FieldElement
    leaf_index: int = Field(..., ge=0, lt=1 << 32, alias="leafIndex")
    timestamp: int = Field(default=0, ge=0)


__all__ = [
    "FieldElement",
    "MembershipProof",
    "WithdrawalStatus",
    "SettlementRequest",
    "SettlementResult",
    "LeafEvent",
]
