"""
Leaf Log

Deposit log sources and the indexer that rebuilds the tree from them.
"""
from .log_source import (
    HttpLeafLogSource,
    InMemoryLeafLog,
    JsonFileLeafLog,
    LeafLogSource,
    create_log_source,
    parse_leaf_log,
    validate_leaf_log,
)
from .indexer import Indexer


__all__ = [
    "LeafLogSource",
    "InMemoryLeafLog",
    "JsonFileLeafLog",
    "HttpLeafLogSource",
    "create_log_source",
    "parse_leaf_log",
    "validate_leaf_log",
    "Indexer",
]
