"""API request and response models."""

from api.models.requests import DepositRequest, VerifyProofRequest
from api.models.responses import (
    DepositResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    LeavesResponse,
    NullifierResponse,
    ProofResponse,
    RootStatusResponse,
    SettleResponse,
    TreeResponse,
    VerifyResponse,
)

__all__ = [
    "DepositRequest",
    "VerifyProofRequest",
    "DepositResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "LeavesResponse",
    "NullifierResponse",
    "ProofResponse",
    "RootStatusResponse",
    "SettleResponse",
    "TreeResponse",
    "VerifyResponse",
]
