"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m pool_cli zeros [--depth N] [--hash NAME] [--json]
    python -m pool_cli root --leaves PATH [--expected ROOT] [--naive] [--json]
    python -m pool_cli prove <leaf_index> --leaves PATH [--out PATH] [--json]
    python -m pool_cli prove --commitment C --leaves PATH
    python -m pool_cli verify <proof_path> [--root ROOT] [--json]
    python -m pool_cli check --leaves PATH [--expected ROOT] [--sample N] [--json]
    python -m pool_cli note [--amount WEI] [--parse NOTE] [--json]
    python -m pool_cli config --init | --show

Environment Variables:
    POOL_TREE_DEPTH             Tree depth (default: 20)
    POOL_ZERO_VALUE             Level-0 zero value
    POOL_HASH_FUNCTION          poseidon-simplified | sha256
    POOL_ROOT_HISTORY_WINDOW    Bounded root history size (default: unbounded)
    POOL_LEDGER_SOURCE          Leaf log file path or URL
    POOL_LOG_LEVEL              Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.crypto.hashing import HASHERS
from core.schemas.errors import PoolException
from pool_cli.commands import check, note, proofs, tree
from pool_cli.commands.common import EXIT_RUNTIME_ERROR, EXIT_SUCCESS
from pool_cli.config import (
    DEFAULT_CONFIG_FILENAME,
    apply_cli_overrides,
    get_default_config_template,
    load_config,
)


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def _tree_options() -> argparse.ArgumentParser:
    """Tree parameter flags shared by every tree-aware command."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--depth",
        type=int,
        default=None,
        help="Tree depth (overrides config)",
    )
    parent.add_argument(
        "--hash",
        dest="hash_function",
        type=str,
        default=None,
        choices=sorted(HASHERS),
        help="Hash function (overrides config)",
    )
    parent.add_argument(
        "--zero-value",
        type=str,
        default=None,
        help="Level-0 zero value, decimal or 0x hex (overrides config)",
    )
    parent.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON",
    )
    return parent


def _log_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--leaves", "-l",
        type=str,
        default=None,
        help="Leaf log JSON file or http(s) URL (overrides config ledger.source)",
    )
    return parent


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="pool",
        description="Privacy Pool CLI - Rebuild the deposit tree, build and verify membership proofs.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./pool.json or ~/.config/privacy-pool/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks on error",
    )

    tree_opts = _tree_options()
    log_opts = _log_options()
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- zeros command ---
    zeros_parser = subparsers.add_parser(
        "zeros",
        parents=[tree_opts],
        help="Print the zero table",
        description="Print zeros[0..depth-1] and the empty-tree root.",
    )
    zeros_parser.set_defaults(func=tree.zeros_cmd)

    # --- root command ---
    root_parser = subparsers.add_parser(
        "root",
        parents=[tree_opts, log_opts],
        help="Rebuild the root from the leaf log",
        description="Reconstruct the tree from the deposit log and print its root.",
    )
    root_parser.add_argument(
        "--expected", "-e",
        type=str,
        default=None,
        help="Authoritative root to compare against (exit 2 on mismatch)",
    )
    root_parser.add_argument(
        "--naive",
        action="store_true",
        default=False,
        help="Also print the per-level padded root (regression reference)",
    )
    root_parser.set_defaults(func=tree.root_cmd)

    # --- prove command ---
    prove_parser = subparsers.add_parser(
        "prove",
        parents=[tree_opts, log_opts],
        help="Build a membership proof",
        description="Build a fresh membership proof from the complete leaf log.",
    )
    prove_parser.add_argument(
        "leaf_index",
        type=int,
        nargs="?",
        default=None,
        help="Leaf index to prove",
    )
    prove_parser.add_argument(
        "--commitment",
        type=str,
        default=None,
        help="Prove a commitment by value instead of by index",
    )
    prove_parser.add_argument(
        "--out", "-o",
        type=str,
        default=None,
        help="Write the proof JSON to this path",
    )
    prove_parser.set_defaults(func=proofs.prove_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        parents=[tree_opts],
        help="Verify a membership proof file",
        description="Fold a proof file to its root and report whether it is valid.",
    )
    verify_parser.add_argument(
        "proof_path",
        type=str,
        help="Path to proof JSON",
    )
    verify_parser.add_argument(
        "--root", "-r",
        type=str,
        default=None,
        help="Root to verify against (default: the root in the proof)",
    )
    verify_parser.set_defaults(func=proofs.verify_cmd)

    # --- check command ---
    check_parser = subparsers.add_parser(
        "check",
        parents=[tree_opts, log_opts],
        help="Check accumulator/reconstruction/proof consistency",
        description="Replay the leaf log and check that every party derives the same root.",
    )
    check_parser.add_argument(
        "--expected", "-e",
        type=str,
        default=None,
        help="Authoritative root to compare against",
    )
    check_parser.add_argument(
        "--sample",
        type=int,
        default=None,
        help="Only prove the first N leaves (default: all)",
    )
    check_parser.set_defaults(func=check.check_cmd)

    # --- note command ---
    note_parser = subparsers.add_parser(
        "note",
        parents=[tree_opts],
        help="Generate or inspect a deposit note",
        description="Generate a note, or derive the commitment and nullifier hash of one.",
    )
    note_parser.add_argument(
        "--amount", "-a",
        type=int,
        default=None,
        help="Deposit amount in base units (required for the commitment)",
    )
    note_parser.add_argument(
        "--parse", "-p",
        type=str,
        default=None,
        help="Existing note to inspect",
    )
    note_parser.set_defaults(func=note.note_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default=DEFAULT_CONFIG_FILENAME,
        help=f"Path for config file (default: {DEFAULT_CONFIG_FILENAME})",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (POOL_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.cli_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: pool config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = apply_cli_overrides(load_config(args.config), args)
    except (OSError, ValueError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except PoolException as e:
        if args.debug:
            traceback.print_exc()
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
