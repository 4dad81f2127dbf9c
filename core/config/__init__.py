"""
Runtime Configuration Module

Provides configuration loading and management for the shielded pool.
"""

from .runtime import (
    ApiConfig,
    LedgerConfig,
    RuntimeConfig,
    TreeConfig,
    get_default_config_template,
    load_runtime_config,
)

__all__ = [
    "ApiConfig",
    "LedgerConfig",
    "RuntimeConfig",
    "TreeConfig",
    "get_default_config_template",
    "load_runtime_config",
]
