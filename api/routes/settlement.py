"""
Settlement Routes

Nullifier lookups and withdrawal settlement.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_pool
from api.models.responses import NullifierResponse, SettleResponse
from api.routes.tree import parse_field_param
from core.pool.shielded_pool import ShieldedPool
from core.schemas.proof import SettlementRequest


logger = logging.getLogger(__name__)

router = APIRouter(tags=["settlement"])


@router.get("/nullifiers/{nullifier_hash}", response_model=NullifierResponse)
def get_nullifier(nullifier_hash: str, pool: ShieldedPool = Depends(get_pool)) -> NullifierResponse:
    """Whether a nullifier hash has been spent."""
    value = parse_field_param("nullifier_hash", nullifier_hash)
    return NullifierResponse(nullifier_hash=value, spent=pool.is_spent(value))


@router.post("/settle", response_model=SettleResponse)
def settle(request: SettlementRequest, pool: ShieldedPool = Depends(get_pool)) -> SettleResponse:
    """
    Settle a withdrawal.

    Checks run in order: known root, proof, then the nullifier is spent
    as the final step.

    Errors:
        422 STALE_ROOT (retryable), 422 BAD_PROOF, 409 DOUBLE_SPEND
    """
    result = pool.settle(request)
    return SettleResponse(result=result)
