"""
API Error Handling

Standardized error handling for the API. Pool exceptions raised by the
core are translated into an ErrorResponse with a status code chosen by
error code.
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorDetail, ErrorResponse
from core.schemas.errors import ErrorCodes, PoolException


# HTTP status for each pool error code; unknown codes map to 400
STATUS_BY_CODE: dict[str, int] = {
    ErrorCodes.SCHEMA_VALIDATION_ERROR: 400,
    ErrorCodes.UNSUPPORTED_VERSION: 400,
    ErrorCodes.LEAF_INDEX_OUT_OF_RANGE: 404,
    ErrorCodes.COMMITMENT_NOT_FOUND: 404,
    ErrorCodes.DOUBLE_SPEND: 409,
    ErrorCodes.DUPLICATE_COMMITMENT: 409,
    ErrorCodes.STALE_ROOT: 422,
    ErrorCodes.BAD_PROOF: 422,
    ErrorCodes.LEAF_LOG_INVALID: 502,
    ErrorCodes.LEAF_LOG_UNAVAILABLE: 503,
    ErrorCodes.TREE_FULL: 507,
    ErrorCodes.RECONSTRUCTION_MISMATCH: 500,
}


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
            ),
        )


class InvalidRequestError(APIError):
    """Invalid request parameters."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code="INVALID_REQUEST",
            message=message,
            status_code=400,
            details=details,
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


async def pool_error_handler(request: Request, exc: PoolException) -> JSONResponse:
    """Handle exceptions raised by the pool core."""
    details = dict(exc.details)
    if exc.retryable:
        details["retryable"] = True
    return JSONResponse(
        status_code=STATUS_BY_CODE.get(exc.code, 400),
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(code=exc.code, message=exc.message, details=details),
        ).model_dump(),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
                details={"type": type(exc).__name__},
            ),
        ).model_dump(),
    )
