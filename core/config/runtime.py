"""
Runtime Configuration

Central configuration for the accumulator, the leaf-log indexer and the
service layer.

TreeConfig is the single source of truth for tree depth, the level-0 zero
value and the hash function. The on-chain updater, the indexer and the
circuit must be configured from the same TreeConfig value; a mismatch in
any field silently produces different roots.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

from core.crypto.hashing import FIELD_MODULUS, HASHERS, FieldHasher, create_hasher, to_field

load_dotenv()


# keccak256("tornado") mod FIELD_MODULUS, the zero leaf used by the withdraw circuit
DEFAULT_ZERO_VALUE: int = (
    21663839004416932945382355908790599225266501822907911457504978515578255421292
)
DEFAULT_TREE_DEPTH: int = 20
DEFAULT_HASH_FUNCTION: str = "poseidon-simplified"

MAX_TREE_DEPTH: int = 32


@dataclass(frozen=True)
class TreeConfig:
    """
    Shared Merkle tree parameters.

    Attributes:
        depth: Number of levels D; capacity is 2^D leaves
        zero_value: Level-0 empty leaf value (zeros[0])
        hash_function: Registered FieldHasher name
        root_history_window: None keeps every root forever; an integer W
            keeps only the last W roots (ring buffer)
    """
    depth: int = DEFAULT_TREE_DEPTH
    zero_value: int = DEFAULT_ZERO_VALUE
    hash_function: str = DEFAULT_HASH_FUNCTION
    root_history_window: Optional[int] = None

    def __post_init__(self):
        if not 1 <= self.depth <= MAX_TREE_DEPTH:
            raise ValueError(f"Tree depth must be in [1, {MAX_TREE_DEPTH}], got {self.depth}")
        if not 0 <= self.zero_value < FIELD_MODULUS:
            raise ValueError("zero_value must be a canonical field element")
        if self.hash_function not in HASHERS:
            raise ValueError(
                f"Unknown hash function {self.hash_function!r}; expected one of {sorted(HASHERS)}"
            )
        if self.root_history_window is not None and self.root_history_window < 1:
            raise ValueError("root_history_window must be a positive integer or None")

    @property
    def capacity(self) -> int:
        """Maximum number of leaves (2^depth)."""
        return 1 << self.depth

    def create_hasher(self) -> FieldHasher:
        """Construct the hasher this tree is configured with."""
        return create_hasher(self.hash_function)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TreeConfig":
        """Build from a dict; zero_value may be an int, decimal or hex string."""
        kwargs = dict(data)
        if "zero_value" in kwargs:
            kwargs["zero_value"] = to_field(kwargs["zero_value"])
        if "depth" in kwargs:
            kwargs["depth"] = int(kwargs["depth"])
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "depth": self.depth,
            "zero_value": str(self.zero_value),
            "hash_function": self.hash_function,
            "root_history_window": self.root_history_window,
        }


@dataclass
class LedgerConfig:
    """Configuration for fetching the deposit leaf log."""
    source: Optional[str] = None  # JSON file path or http(s) URL
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0


@dataclass
class ApiConfig:
    """Configuration for the HTTP service."""
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    tree: TreeConfig = field(default_factory=TreeConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - POOL_TREE_DEPTH: Tree depth
        - POOL_ZERO_VALUE: Level-0 zero value (decimal or 0x hex)
        - POOL_HASH_FUNCTION: Hasher name
        - POOL_ROOT_HISTORY_WINDOW: Bounded root history size ("none" = unbounded)
        - POOL_LEDGER_SOURCE: Leaf log file path or URL
        - POOL_LEDGER_TIMEOUT: Leaf log fetch timeout in seconds
        - POOL_LOG_LEVEL: Log level
        """
        overrides: dict[str, Any] = {}

        # Tree settings
        if os.getenv("POOL_TREE_DEPTH"):
            overrides.setdefault("tree", {})["depth"] = int(os.getenv("POOL_TREE_DEPTH"))
        if os.getenv("POOL_ZERO_VALUE"):
            overrides.setdefault("tree", {})["zero_value"] = os.getenv("POOL_ZERO_VALUE")
        if os.getenv("POOL_HASH_FUNCTION"):
            overrides.setdefault("tree", {})["hash_function"] = os.getenv("POOL_HASH_FUNCTION")
        if os.getenv("POOL_ROOT_HISTORY_WINDOW"):
            raw = os.getenv("POOL_ROOT_HISTORY_WINDOW", "none").lower()
            overrides.setdefault("tree", {})["root_history_window"] = (
                None if raw in ("none", "0", "") else int(raw)
            )

        # Ledger settings
        if os.getenv("POOL_LEDGER_SOURCE"):
            overrides.setdefault("ledger", {})["source"] = os.getenv("POOL_LEDGER_SOURCE")
        if os.getenv("POOL_LEDGER_TIMEOUT"):
            overrides.setdefault("ledger", {})["timeout"] = float(os.getenv("POOL_LEDGER_TIMEOUT"))

        # Logging
        if os.getenv("POOL_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("POOL_LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        tree_data = data.get("tree", {})
        ledger_data = data.get("ledger", {})
        api_data = data.get("api", {})

        tree = TreeConfig.from_dict(tree_data) if tree_data else TreeConfig()
        ledger = LedgerConfig(**ledger_data) if ledger_data else LedgerConfig()
        api = ApiConfig(**api_data) if api_data else ApiConfig()

        return cls(
            tree=tree,
            ledger=ledger,
            api=api,
            log_level=data.get("log_level", "INFO"),
            log_file=data.get("log_file"),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        import copy
        new_config = copy.deepcopy(self)

        # TreeConfig is frozen; rebuild it so validation runs again
        if "tree" in overrides:
            merged = self.tree.to_dict()
            merged.update(overrides["tree"])
            new_config.tree = TreeConfig.from_dict(merged)

        if "ledger" in overrides:
            new_config.ledger = replace(self.ledger, **overrides["ledger"])

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "tree": self.tree.to_dict(),
            "ledger": {
                "source": self.ledger.source,
                "timeout": self.ledger.timeout,
                "max_retries": self.ledger.max_retries,
                "retry_delay": self.ledger.retry_delay,
            },
            "api": {
                "host": self.api.host,
                "port": self.api.port,
            },
            "log_level": self.log_level,
            "log_file": self.log_file,
            "extra": self.extra,
        }


CONFIG_SEARCH_PATHS: tuple[Path, ...] = (
    Path("pool.json"),
    Path(".pool.json"),
    Path.home() / ".config" / "privacy-pool" / "config.json",
)


def load_runtime_config(config_path: Path | None = None) -> RuntimeConfig:
    """
    Load RuntimeConfig from a config file, then overlay environment variables.

    Search order when no path is given:
      1. ./pool.json
      2. ./.pool.json
      3. ~/.config/privacy-pool/config.json

    Files ending in .yaml/.yml are parsed with PyYAML, everything else as JSON.
    Environment variables ALWAYS override config file values.
    """
    import json

    if config_path is not None:
        candidates = [config_path]
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        candidates = [p for p in CONFIG_SEARCH_PATHS if p.exists()]

    config = RuntimeConfig()
    for path in candidates[:1]:
        if path.suffix in (".yaml", ".yml"):
            config = RuntimeConfig.from_yaml(path)
        else:
            with open(path) as f:
                config = RuntimeConfig.from_dict(json.load(f))

    return config.with_env_overrides()


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """{
  "tree": {
    "depth": 20,
    "zero_value": "21663839004416932945382355908790599225266501822907911457504978515578255421292",
    "hash_function": "poseidon-simplified",
    "root_history_window": null
  },
  "ledger": {
    "source": "deposits.json",
    "timeout": 30.0,
    "max_retries": 3,
    "retry_delay": 1.0
  },
  "api": {
    "host": "127.0.0.1",
    "port": 8000
  },
  "log_level": "INFO",
  "log_file": null
}
"""
