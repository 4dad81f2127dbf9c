"""
Deposit Notes
Secret notes, commitments and nullifier hashes.

A note is the only thing a depositor keeps. It encodes a 31-byte secret
and a 31-byte nullifier seed:

    private-defi-<secret hex>-<nullifier hex>-v1

Commitment Rules (shared by accumulator, indexer and circuit):
1. commitment     = H(secret, amount)
2. nullifier_hash = H(secret, NULLIFIER_DOMAIN)
3. 0 < amount < 2^128, so no amount can collide with NULLIFIER_DOMAIN

H is the configured FieldHasher.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass

from core.crypto.hashing import FIELD_MODULUS, FieldHasher, to_field


NOTE_PREFIX = "private-defi"
NOTE_VERSION = "v1"

# Random bytes per secret; 31 bytes always fits below FIELD_MODULUS
NOTE_SECRET_BYTES = 31

# Domain tag separating nullifier hashes from commitments
NULLIFIER_DOMAIN: int = FIELD_MODULUS - 1

MAX_AMOUNT: int = 1 << 128


@dataclass(frozen=True)
class Note:
    """A parsed deposit note."""
    secret: int
    nullifier: int

    def __post_init__(self) -> None:
        for name in ("secret", "nullifier"):
            value = getattr(self, name)
            if not 0 < value < (1 << (8 * NOTE_SECRET_BYTES)):
                raise ValueError(f"Note {name} must be a non-zero {NOTE_SECRET_BYTES}-byte value")

    def encode(self) -> str:
        """Serialize to the private-defi-<secret>-<nullifier>-v1 format."""
        width = 2 * NOTE_SECRET_BYTES
        return (
            f"{NOTE_PREFIX}-{self.secret:0{width}x}-{self.nullifier:0{width}x}-{NOTE_VERSION}"
        )


def generate_note() -> Note:
    """Generate a fresh note from the OS CSPRNG."""
    while True:
        secret = int.from_bytes(secrets.token_bytes(NOTE_SECRET_BYTES), "big")
        nullifier = int.from_bytes(secrets.token_bytes(NOTE_SECRET_BYTES), "big")
        if secret and nullifier:
            return Note(secret=secret, nullifier=nullifier)


def parse_note(text: str) -> Note:
    """
    Parse a note string.

    Raises:
        ValueError: If the note is not in private-defi-<secret>-<nullifier>-v1 format
    """
    parts = text.strip().split("-")
    if len(parts) != 5 or f"{parts[0]}-{parts[1]}" != NOTE_PREFIX or parts[4] != NOTE_VERSION:
        raise ValueError(
            "Invalid note format. Expected format: private-defi-<secret>-<nullifier>-v1"
        )
    try:
        secret = int(parts[2], 16)
        nullifier = int(parts[3], 16)
    except ValueError as e:
        raise ValueError(f"Invalid hex in note: {e}") from e
    return Note(secret=secret, nullifier=nullifier)


def compute_commitment(hasher: FieldHasher, secret: int, amount: int) -> int:
    """
    Compute the commitment inserted as a Merkle leaf.

    Raises:
        ValueError: If amount is outside (0, 2^128)
    """
    if not 0 < amount < MAX_AMOUNT:
        raise ValueError(f"Deposit amount must be in (0, 2^128), got {amount}")
    return hasher.hash_pair(to_field(secret), amount)


def compute_nullifier_hash(hasher: FieldHasher, secret: int) -> int:
    """Compute the nullifier hash revealed on withdrawal."""
    return hasher.hash_pair(to_field(secret), NULLIFIER_DOMAIN)


__all__ = [
    "NOTE_PREFIX",
    "NOTE_VERSION",
    "NULLIFIER_DOMAIN",
    "MAX_AMOUNT",
    "Note",
    "generate_note",
    "parse_note",
    "compute_commitment",
    "compute_nullifier_hash",
]
