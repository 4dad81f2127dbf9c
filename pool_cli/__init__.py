"""
Privacy Pool CLI

Command-line interface for the shielded pool's Merkle accumulator.

Usage:
    python -m pool_cli zeros
    python -m pool_cli root --leaves deposits.json --expected 0x...
    python -m pool_cli prove 3 --leaves deposits.json --out proof.json
    python -m pool_cli verify proof.json
    python -m pool_cli check --leaves deposits.json
    python -m pool_cli note --amount 100000000000000000
"""

__version__ = "0.1.0"
