"""
Hashing Utilities
Field arithmetic helpers and the two-to-one hash functions used by the
Merkle accumulator.

This module provides:
- BN254 scalar field constants and range checks
- 32-byte big-endian hex encoding of field elements (0x prefix)
- FieldHasher: the two-to-one compression interface every party shares
- SimplifiedPoseidonHasher: the contract-compatible Poseidon-style hash
- Sha256FieldHasher: SHA-256 reduced into the field

Determinism Notes:
- Hashers are stateless values. Build one with create_hasher() from the
  tree configuration and pass it to every component that needs it.
- Inputs must already be canonical field elements (0 <= x < FIELD_MODULUS);
  nothing is silently reduced.
"""
from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod


# BN254 scalar field (the SNARK scalar field of the proving system)
FIELD_MODULUS: int = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)

# Width of a serialized field element
FIELD_BYTES: int = 32


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte SHA-256 digest
    """
    return hashlib.sha256(data).digest()


def is_field_element(value: int) -> bool:
    """Check whether value is a canonical field element."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < FIELD_MODULUS


def to_field(value: int | str | bytes) -> int:
    """
    Coerce an int, hex string or 32-byte big-endian value to a field element.

    Args:
        value: Integer, "0x"-prefixed hex string, decimal string, or bytes

    Returns:
        The value as an int in [0, FIELD_MODULUS)

    Raises:
        ValueError: If the value is malformed or not a canonical field element
    """
    if isinstance(value, bool):
        raise ValueError("Booleans are not field elements")

    if isinstance(value, bytes):
        if len(value) != FIELD_BYTES:
            raise ValueError(f"Expected {FIELD_BYTES} bytes, got {len(value)}")
        result = int.from_bytes(value, "big")
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith(("0x", "0X")):
            try:
                result = int(text[2:] or "0", 16)
            except ValueError as e:
                raise ValueError(f"Invalid hex field element: {text[:20]!r}") from e
        elif text.isdigit():
            result = int(text)
        else:
            raise ValueError(f"Cannot parse field element from: {text[:20]!r}")
    elif isinstance(value, int):
        result = value
    else:
        raise ValueError(f"Unsupported field element type: {type(value).__name__}")

    if not 0 <= result < FIELD_MODULUS:
        raise ValueError("Value is not a canonical field element (must be < FIELD_MODULUS)")
    return result


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def field_to_hex(value: int) -> str:
    """
    Encode a field element as a 32-byte big-endian 0x-prefixed hex string.

    This is the wire format of commitments and roots in the leaf log.

    Example:
        >>> field_to_hex(1)
        '0x0000000000000000000000000000000000000000000000000000000000000001'
    """
    return to_hex(to_field(value).to_bytes(FIELD_BYTES, "big"))


def field_from_hex(hex_string: str) -> int:
    """Decode a 0x-prefixed hex string into a field element."""
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )
    return to_field(hex_string)


class FieldHasher(ABC):
    """
    Two-to-one compression function over the scalar field.

    The accumulator, the reconstructor and the circuit must all use the
    same hasher, so it is built once from TreeConfig and injected.
    """

    name: str = "abstract"

    @abstractmethod
    def hash_pair(self, left: int, right: int) -> int:
        """Hash an ordered (left, right) pair of field elements."""

    def __call__(self, left: int, right: int) -> int:
        return self.hash_pair(left, right)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class SimplifiedPoseidonHasher(FieldHasher):
    """
    Two-round Poseidon-style permutation deployed in the pool contract.

    Round structure for inputs (a, b):
        x, y   = (a + C0)^5, (b + C1)^5
        t0, t1 = x + y, 2x + y
        out    = (t0 + C2)^5 + (t1 + C0)^5

    All arithmetic is mod FIELD_MODULUS.
    """

    name = "poseidon-simplified"

    C0 = 0x109B7F411BA0E4C9B2B70CAF5C36A7B194BE7C11AD24378BFEDB68592BA8118B
    C1 = 0x16ED41E13BB9C0C66AE119424FDDBCBC9314DC9FDBDEEA55D6C64543DC4903E0
    C2 = 0x2B90BBA00FCA0589F617E7DCBFE82E0DF706AB640CEB247B791A93B74E36736D

    def hash_pair(self, left: int, right: int) -> int:
        p = FIELD_MODULUS
        x = pow((_check(left) + self.C0) % p, 5, p)
        y = pow((_check(right) + self.C1) % p, 5, p)

        t0 = (x + y) % p
        t1 = (2 * x + y) % p

        t0 = pow((t0 + self.C2) % p, 5, p)
        t1 = pow((t1 + self.C0) % p, 5, p)
        return (t0 + t1) % p


class Sha256FieldHasher(FieldHasher):
    """SHA-256 over the two 32-byte big-endian encodings, reduced mod FIELD_MODULUS."""

    name = "sha256"

    def hash_pair(self, left: int, right: int) -> int:
        data = _check(left).to_bytes(FIELD_BYTES, "big") + _check(right).to_bytes(FIELD_BYTES, "big")
        return int.from_bytes(sha256(data), "big") % FIELD_MODULUS


HASHERS: dict[str, type[FieldHasher]] = {
    SimplifiedPoseidonHasher.name: SimplifiedPoseidonHasher,
    Sha256FieldHasher.name: Sha256FieldHasher,
}


def create_hasher(name: str) -> FieldHasher:
    """
    Construct a hasher by its configured name.

    Raises:
        ValueError: If no hasher is registered under that name
    """
    try:
        return HASHERS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown hash function {name!r}; expected one of {sorted(HASHERS)}"
        ) from None


def _check(value: int) -> int:
    if not is_field_element(value):
        raise ValueError(f"Hash input is not a canonical field element: {value!r}")
    return value


__all__ = [
    "FIELD_MODULUS",
    "FIELD_BYTES",
    "sha256",
    "is_field_element",
    "to_field",
    "to_hex",
    "from_hex",
    "field_to_hex",
    "field_from_hex",
    "FieldHasher",
    "SimplifiedPoseidonHasher",
    "Sha256FieldHasher",
    "HASHERS",
    "create_hasher",
]
