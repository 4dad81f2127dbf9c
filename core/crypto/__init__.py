"""
Core cryptographic utilities.

Field helpers, pluggable two-to-one hashers, and deposit notes.
"""
from .hashing import (
    FIELD_MODULUS,
    FieldHasher,
    SimplifiedPoseidonHasher,
    Sha256FieldHasher,
    create_hasher,
    field_from_hex,
    field_to_hex,
    from_hex,
    sha256,
    to_field,
    to_hex,
)
from .notes import (
    Note,
    compute_commitment,
    compute_nullifier_hash,
    generate_note,
    parse_note,
)

__all__ = [
    "FIELD_MODULUS",
    "FieldHasher",
    "SimplifiedPoseidonHasher",
    "Sha256FieldHasher",
    "create_hasher",
    "field_from_hex",
    "field_to_hex",
    "from_hex",
    "sha256",
    "to_field",
    "to_hex",
    "Note",
    "compute_commitment",
    "compute_nullifier_hash",
    "generate_note",
    "parse_note",
]
