"""
Proof Routes

Fresh membership proofs and stateless proof verification.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_pool
from api.models.requests import VerifyProofRequest
from api.models.responses import ProofResponse, VerifyResponse
from core.merkle.merkle_proofs import MerkleVerifier
from core.pool.shielded_pool import ShieldedPool


logger = logging.getLogger(__name__)

router = APIRouter(tags=["proofs"])


@router.get("/proof/{leaf_index}", response_model=ProofResponse)
def get_proof(leaf_index: int, pool: ShieldedPool = Depends(get_pool)) -> ProofResponse:
    """
    Membership proof for a leaf against the current root.

    The tree is rebuilt from the complete deposit log on every request,
    so the proof always reflects every deposit made so far.

    Errors:
        404 LEAF_INDEX_OUT_OF_RANGE, 500 RECONSTRUCTION_MISMATCH
    """
    proof = pool.prove(leaf_index)
    return ProofResponse(proof=proof)


@router.post("/verify", response_model=VerifyResponse)
def verify_proof(request: VerifyProofRequest, pool: ShieldedPool = Depends(get_pool)) -> VerifyResponse:
    """
    Fold a membership proof and report whether it reaches the root.

    Verification is pure: nothing is spent and no state changes.
    """
    root = request.root if request.root is not None else request.proof.root
    valid = MerkleVerifier(pool.hasher, pool.config.depth).verify(request.proof, root)
    return VerifyResponse(valid=valid, root=root, known_root=pool.is_known_root(root))
