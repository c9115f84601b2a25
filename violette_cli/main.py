"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m violette_cli merkle root <entries.json> [--json]
    python -m violette_cli merkle proof <entries.json> --index N [--out PATH]
    python -m violette_cli merkle verify <proof.json> [--root HEX]
    python -m violette_cli did create --id <anonymized id> [--anonymous] [--save-account PATH]
    python -m violette_cli did resolve <did>
    python -m violette_cli did delete <did> --account PATH
    python -m violette_cli config --init

Environment Variables:
    VIOLETTE_LEDGER_URL          XRPL JSON-RPC endpoint
    VIOLETTE_LEDGER_TESTNET      Fund new accounts from the faucet (default: true)
    VIOLETTE_RECORDS_DIR         Directory for off-ledger identity records
    VIOLETTE_LOG_LEVEL           Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from violette_cli.commands import did, merkle
from violette_cli.config import get_default_config_template, load_config


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="violette",
        description="Violette ledger core CLI - diary snapshot proofs and XRPL DID management.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./violette.yaml or ~/.config/violette/config.yaml)",
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
        help="Print tracebacks for unexpected errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- merkle command ---
    merkle_parser = subparsers.add_parser(
        "merkle",
        help="Offline Merkle roots and inclusion proofs",
        description="Compute snapshot roots and proofs from an entries export.",
    )
    merkle_sub = merkle_parser.add_subparsers(dest="merkle_command")

    root_parser = merkle_sub.add_parser("root", help="Compute the root of an entries file")
    root_parser.add_argument("entries", type=str, help="Path to entries JSON")
    root_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output the full tree as JSON",
    )
    root_parser.set_defaults(func=merkle.root_cmd)

    proof_parser = merkle_sub.add_parser("proof", help="Build an inclusion proof for one entry")
    proof_parser.add_argument("entries", type=str, help="Path to entries JSON")
    proof_parser.add_argument(
        "--index", "-i",
        type=int,
        required=True,
        help="0-based position of the entry",
    )
    proof_parser.add_argument(
        "--out", "-o",
        type=str,
        default=None,
        help="Write the proof to this file instead of stdout",
    )
    proof_parser.set_defaults(func=merkle.proof_cmd)

    verify_parser = merkle_sub.add_parser("verify", help="Verify an inclusion proof")
    verify_parser.add_argument("proof", type=str, help="Path to proof JSON")
    verify_parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Expected root (hex); defaults to the root inside the proof",
    )
    verify_parser.set_defaults(func=merkle.verify_cmd)

    # --- did command ---
    did_parser = subparsers.add_parser(
        "did",
        help="Create, resolve and delete DIDs on the ledger",
        description="Manage XRPL DIDs through a JSON-RPC node.",
    )
    did_sub = did_parser.add_subparsers(dest="did_command")

    create_parser_ = did_sub.add_parser("create", help="Create a DID for a new account")
    create_parser_.add_argument(
        "--id",
        type=str,
        required=True,
        help="Anonymized user identifier",
    )
    create_parser_.add_argument(
        "--anonymous",
        action="store_true",
        default=False,
        help="Strict privacy: publish no service endpoints",
    )
    create_parser_.add_argument(
        "--save-account",
        type=str,
        default=None,
        help="Write the controlling account (including its seed) to this file",
    )
    create_parser_.set_defaults(func=did.create_cmd)

    resolve_parser = did_sub.add_parser("resolve", help="Resolve a DID from the ledger")
    resolve_parser.add_argument("did", type=str, help="DID to resolve")
    resolve_parser.set_defaults(func=did.resolve_cmd)

    delete_parser = did_sub.add_parser("delete", help="Delete a DID")
    delete_parser.add_argument("did", type=str, help="DID to delete")
    delete_parser.add_argument(
        "--account",
        type=str,
        required=True,
        help="Account file written by 'did create --save-account'",
    )
    delete_parser.set_defaults(func=did.delete_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage CLI configuration",
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
        default="violette.yaml",
        help="Path for config file (default: violette.yaml)",
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
        print("You can also use environment variables (VIOLETTE_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.runtime_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    print("Usage: violette config [--init|--show]")
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

    if getattr(args, "func", None) is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    setup_logging(level=args.log_level or config.log_level)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
