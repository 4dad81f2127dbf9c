"""
Tree Routes

Accumulator state, the deposit log, root lookups and deposits.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_pool
from api.errors import InvalidRequestError
from api.models.requests import DepositRequest
from api.models.responses import (
    DepositResponse,
    LeavesResponse,
    RootStatusResponse,
    TreeResponse,
)
from core.crypto.hashing import to_field
from core.pool.shielded_pool import ShieldedPool


logger = logging.getLogger(__name__)

router = APIRouter(tags=["tree"])


def parse_field_param(name: str, value: str) -> int:
    """Parse a path parameter as a field element (0x hex or decimal)."""
    try:
        return to_field(value)
    except ValueError as e:
        raise InvalidRequestError(f"Invalid {name}: {e}", details={"value": value})


@router.get("/tree", response_model=TreeResponse)
def get_tree(pool: ShieldedPool = Depends(get_pool)) -> TreeResponse:
    """Current root, next leaf index and the tree parameters."""
    config = pool.config
    return TreeResponse(
        depth=config.depth,
        zero_value=config.zero_value,
        hash_function=config.hash_function,
        root=pool.current_root,
        next_index=pool.next_index,
        capacity=config.capacity,
        root_history_window=config.root_history_window,
        known_roots=len(pool.root_history),
    )


@router.get("/tree/leaves", response_model=LeavesResponse)
def get_leaves(pool: ShieldedPool = Depends(get_pool)) -> LeavesResponse:
    """
    The full deposit log in leaf order.

    Clients rebuild the tree from this log to produce proofs offline.
    """
    events = pool.events()
    return LeavesResponse(count=len(events), events=events)


@router.get("/roots/{root}", response_model=RootStatusResponse)
def get_root_status(root: str, pool: ShieldedPool = Depends(get_pool)) -> RootStatusResponse:
    """Whether a root is currently accepted for withdrawals."""
    value = parse_field_param("root", root)
    return RootStatusResponse(
        root=value,
        known=pool.is_known_root(value),
        is_current=value == pool.current_root,
    )


@router.post("/deposit", response_model=DepositResponse)
def deposit(request: DepositRequest, pool: ShieldedPool = Depends(get_pool)) -> DepositResponse:
    """
    Insert a commitment as the next leaf.

    Errors:
        409 DUPLICATE_COMMITMENT, 507 TREE_FULL
    """
    event = pool.deposit(request.commitment, timestamp=request.timestamp)
    return DepositResponse(event=event, root=pool.root_after(event.leaf_index))
