"""
API Dependencies

Dependency injection for the API. The pool and its configuration live on
app.state and are handed to route handlers through these providers.
"""

from __future__ import annotations

import logging

from fastapi import Request

from core.config.runtime import RuntimeConfig
from core.ledger.log_source import create_log_source
from core.pool.shielded_pool import ShieldedPool

logger = logging.getLogger(__name__)


def build_pool(config: RuntimeConfig) -> ShieldedPool:
    """
    Create a pool from config, replaying the configured leaf log if any.

    Replaying through deposit() rebuilds the accumulator and root history
    exactly as they were when the log was written.

    The pool settles with TransparentProofChecker, which does not bind
    nullifier hashes to leaves; a deployment must plug in a real verifier.

    Raises:
        LeafLogError: If the configured log cannot be read or is inconsistent
    """
    pool = ShieldedPool(config.tree)
    logger.warning(
        "Settling with TransparentProofChecker: development only, "
        "nullifier hashes are not bound to leaves"
    )
    if config.ledger.source:
        source = create_log_source(config.ledger)
        events = source.fetch_validated()
        for event in events:
            pool.deposit(event.commitment, timestamp=event.timestamp)
        logger.info(f"Restored {len(events)} deposits from {source.name}")
    return pool


def get_pool(request: Request) -> ShieldedPool:
    """Provide the application's ShieldedPool."""
    return request.app.state.pool


def get_config(request: Request) -> RuntimeConfig:
    """Provide the application's RuntimeConfig."""
    return request.app.state.config
