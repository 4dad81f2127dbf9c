"""
CLI Configuration

Loads the shared RuntimeConfig and applies per-invocation flag overrides.
Precedence (lowest to highest): defaults, config file, POOL_* environment
variables, command-line flags.
"""

from __future__ import annotations

from argparse import Namespace
from dataclasses import replace
from pathlib import Path

from core.config.runtime import (
    RuntimeConfig,
    TreeConfig,
    get_default_config_template,
    load_runtime_config,
)
from core.crypto.hashing import to_field


DEFAULT_CONFIG_FILENAME = "pool.json"


def load_config(config_path: Path | None = None) -> RuntimeConfig:
    """
    Load configuration from file and/or environment.

    Raises:
        FileNotFoundError: If config_path is given but does not exist
    """
    return load_runtime_config(config_path)


def apply_cli_overrides(config: RuntimeConfig, args: Namespace) -> RuntimeConfig:
    """
    Overlay --depth / --hash / --zero-value / --leaves flags onto a config.

    TreeConfig is frozen, so a changed tree is rebuilt and revalidated.
    """
    tree_changes = {}
    if getattr(args, "depth", None) is not None:
        tree_changes["depth"] = args.depth
    if getattr(args, "hash_function", None) is not None:
        tree_changes["hash_function"] = args.hash_function
    if getattr(args, "zero_value", None) is not None:
        tree_changes["zero_value"] = to_field(args.zero_value)

    ledger = config.ledger
    if getattr(args, "leaves", None):
        ledger = replace(ledger, source=args.leaves)

    if not tree_changes and ledger is config.ledger:
        return config

    tree: TreeConfig = replace(config.tree, **tree_changes) if tree_changes else config.tree
    return replace(config, tree=tree, ledger=ledger)


__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "apply_cli_overrides",
    "get_default_config_template",
    "load_config",
]
