"""API route handlers."""

from api.routes import health, proofs, settlement, tree

__all__ = ["health", "proofs", "settlement", "tree"]
