"""
FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:create_app --factory --reload

    # Or run directly
    python -m api.app
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import build_pool
from api.errors import APIError, api_error_handler, generic_error_handler, pool_error_handler
from api.routes import health, proofs, settlement, tree
from core.config.runtime import RuntimeConfig, load_runtime_config
from core.pool.shielded_pool import ShieldedPool
from core.schemas.errors import PoolException


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_app(
    config: Optional[RuntimeConfig] = None,
    pool: Optional[ShieldedPool] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Runtime configuration; loaded from pool.json and POOL_*
            environment variables when omitted
        pool: Pre-built pool; built from config (replaying the configured
            leaf log) when omitted
    """
    if config is None:
        config = load_runtime_config()
    _configure_logging(config.log_level)

    app = FastAPI(
        title="Privacy Pool API",
        description="""
HTTP API for a shielded pool's Merkle accumulator and settlement authority.

## Endpoints

- **GET /tree** - Current root, next leaf index and tree parameters
- **GET /tree/leaves** - Ordered deposit log
- **GET /roots/{root}** - Whether a root is accepted for withdrawals
- **POST /deposit** - Insert a commitment
- **GET /proof/{leaf_index}** - Fresh membership proof against the current root
- **POST /verify** - Fold a membership proof
- **GET /nullifiers/{nullifier_hash}** - Whether a nullifier is spent
- **POST /settle** - Settle a withdrawal
- **GET /health** - Health check

Field elements are 0x-prefixed 32-byte hex strings; decimal strings are
also accepted on input.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(PoolException, pool_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    app.state.config = config
    app.state.pool = pool if pool is not None else build_pool(config)

    app.include_router(health.router)
    app.include_router(tree.router)
    app.include_router(proofs.router)
    app.include_router(settlement.router)

    return app


if __name__ == "__main__":
    import uvicorn

    runtime = load_runtime_config()
    uvicorn.run(create_app(runtime), host=runtime.api.host, port=runtime.api.port)
