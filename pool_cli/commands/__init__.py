"""
CLI command modules.
"""

from pool_cli.commands import check, note, proofs, tree

__all__ = ["check", "note", "proofs", "tree"]
