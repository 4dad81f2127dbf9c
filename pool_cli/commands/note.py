"""
CLI Note Command

Generate a deposit note, or derive the public values of an existing one.

Usage:
    pool note --amount 100000000000000000
    pool note --parse private-defi-<secret>-<nullifier>-v1 --amount 100000000000000000
"""

from __future__ import annotations

from argparse import Namespace

from core.crypto.hashing import field_to_hex
from core.crypto.notes import compute_commitment, compute_nullifier_hash, generate_note, parse_note
from pool_cli.commands.common import EXIT_SUCCESS, print_json


def note_cmd(args: Namespace) -> int:
    """Print a note with its nullifier hash and, given --amount, its commitment."""
    hasher = args.cli_config.tree.create_hasher()
    note = parse_note(args.parse) if args.parse else generate_note()

    result = {
        "note": note.encode(),
        "nullifier_hash": field_to_hex(compute_nullifier_hash(hasher, note.secret)),
    }
    if args.amount is not None:
        result["amount"] = args.amount
        result["commitment"] = field_to_hex(compute_commitment(hasher, note.secret, args.amount))

    if args.json:
        print_json(result)
        return EXIT_SUCCESS

    print(f"Note:           {result['note']}")
    if "commitment" in result:
        print(f"Commitment:     {result['commitment']}")
    print(f"Nullifier hash: {result['nullifier_hash']}")
    if not args.parse:
        print("\nKeep this note secret. It is the only way to withdraw the deposit.")
    return EXIT_SUCCESS
