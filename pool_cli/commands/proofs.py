"""
CLI Proof Commands

Build a membership proof from the current leaf log, and verify a proof
file offline.

Usage:
    pool prove 3 --leaves deposits.json [--out proof.json] [--json]
    pool prove --commitment 0x... --leaves deposits.json
    pool verify proof.json [--root ROOT] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path

from pydantic import ValidationError

from core.crypto.hashing import field_to_hex, to_field
from core.merkle.merkle_proofs import MerkleVerifier
from core.schemas.proof import MembershipProof
from pool_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    build_indexer,
    print_json,
)


logger = logging.getLogger(__name__)


def prove_cmd(args: Namespace) -> int:
    """Build a fresh proof for a leaf index or commitment."""
    if args.leaf_index is None and args.commitment is None:
        print("Error: give a leaf index or --commitment", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    indexer = build_indexer(args.cli_config)
    if args.commitment is not None:
        proof = indexer.prove_commitment(args.commitment)
    else:
        proof = indexer.prove(args.leaf_index)

    payload = proof.model_dump(mode="json")
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(payload, indent=2))
        logger.info(f"Wrote proof for leaf {proof.leaf_index} to {out_path}")

    if args.json:
        print_json(payload)
    else:
        print(f"Leaf index:   {proof.leaf_index}")
        print(f"Leaf:         {field_to_hex(proof.leaf)}")
        print(f"Root:         {field_to_hex(proof.root)}")
        print(f"Path indices: {proof.path_indices}")
        if args.out:
            print(f"Saved to:     {args.out}")
    return EXIT_SUCCESS


def verify_cmd(args: Namespace) -> int:
    """
    Fold a proof file to its root (or --root) and report the result.

    Exit code 2 when the proof is malformed or does not verify.
    """
    proof_path = Path(args.proof_path)
    if not proof_path.exists():
        raise FileNotFoundError(f"Proof file not found: {proof_path}")

    try:
        proof = MembershipProof.model_validate_json(proof_path.read_text())
    except ValidationError as e:
        message = f"Malformed proof: {e.errors()[0].get('msg')}"
        if args.json:
            print_json({"valid": False, "errors": [message]})
        else:
            print(f"INVALID - {message}")
        return EXIT_VERIFICATION_FAILED

    root = to_field(args.root) if args.root else proof.root
    hasher = args.cli_config.tree.create_hasher()
    valid = MerkleVerifier(hasher, args.cli_config.tree.depth).verify(proof, root)

    if args.json:
        print_json({
            "valid": valid,
            "leaf_index": proof.leaf_index,
            "root": field_to_hex(root),
            "depth": proof.depth,
        })
    else:
        status = "VALID" if valid else "INVALID"
        print(f"{status} - leaf {proof.leaf_index} against root {field_to_hex(root)}")

    return EXIT_SUCCESS if valid else EXIT_VERIFICATION_FAILED
