"""
Helpers shared by CLI commands.
"""

from __future__ import annotations

import json
from typing import Any

from core.config.runtime import RuntimeConfig
from core.ledger.indexer import Indexer
from core.ledger.log_source import create_log_source


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def build_indexer(config: RuntimeConfig) -> Indexer:
    """Indexer over the configured leaf log, using the configured tree."""
    return Indexer(
        config.tree,
        config.tree.create_hasher(),
        create_log_source(config.ledger),
    )


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))
