"""
Command-line entry point.

Usage:
    poseidon-smt generate [--h-level N] [--l-level N] [--pre-image N] [--workers N] [--out-dir DIR]
    poseidon-smt prove --depth D --key BITS [--out FILE]
    poseidon-smt verify FILE

Environment Variables:
    POSEIDON_SMT_LOG_LEVEL      Default log level (default: WARNING)
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from poseidon_smt import __version__
from poseidon_smt.composition import build_multilevel_root
from poseidon_smt.exceptions import SMTError
from poseidon_smt.keys import validate_key
from poseidon_smt.serialization import load_proof_document, proof_document, to_hex32
from poseidon_smt.sparse import new_deterministic_sparse_merkle_tree, verify_merkle_path

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2

LOG_LEVEL_ENV = "POSEIDON_SMT_LOG_LEVEL"


def setup_logging(level: str = "WARNING") -> None:
    """Configure logging for the CLI."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def output_file_name(h_level: int, l_level: int, pre_image: int) -> str:
    return f"output_hLevel_{h_level}_lLevel_{l_level}_preImage_{pre_image}.json"


def cmd_generate(args: argparse.Namespace) -> int:
    root, branches = build_multilevel_root(
        args.h_level,
        args.l_level,
        args.pre_image,
        workers=args.workers,
        progress=not args.no_progress,
    )

    output = {
        "hLevel": args.h_level,
        "lLevel": args.l_level,
        "preimage": args.pre_image,
        "root": to_hex32(root),
        "branches": [to_hex32(branch) for branch in branches],
    }
    text = json.dumps(output, indent=4)
    print(text)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / output_file_name(args.h_level, args.l_level, args.pre_image)
    out_path.write_text(text + "\n")
    print(f"Output written to {out_path}", file=sys.stderr)
    return EXIT_SUCCESS


def cmd_prove(args: argparse.Namespace) -> int:
    validate_key(args.key, args.depth)
    tree = new_deterministic_sparse_merkle_tree(args.depth)
    path = tree.generate_merkle_path(args.key)
    document = proof_document(args.depth, args.key, tree.leaves[args.key], tree.root, path)

    text = json.dumps(document, indent=4)
    if args.out:
        Path(args.out).write_text(text + "\n")
        print(f"Proof written to {args.out}", file=sys.stderr)
    else:
        print(text)
    return EXIT_SUCCESS


def cmd_verify(args: argparse.Namespace) -> int:
    try:
        document = json.loads(Path(args.proof).read_text())
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        print(f"Error: cannot read proof {args.proof}: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    leaf, path, root = load_proof_document(document)
    if verify_merkle_path(leaf, path, root):
        print("valid")
        return EXIT_SUCCESS
    print("invalid")
    return EXIT_VERIFICATION_FAILED


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="poseidon-smt",
        description="Build Poseidon Merkle trees and produce or check inclusion proofs.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV, "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help=f"Logging level (default: ${LOG_LEVEL_ENV} or WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Compute a multi-level dense tree root")
    gen.add_argument("--h-level", type=int, default=4, help="Height of the top tree (default: 4)")
    gen.add_argument("--l-level", type=int, default=16, help="Height of each branch (default: 16)")
    gen.add_argument("--pre-image", type=int, default=0, help="Branch offset (default: 0)")
    gen.add_argument("--workers", type=int, default=None, help="Worker processes (default: CPU count)")
    gen.add_argument("--out-dir", default=".", help="Directory for the JSON output file")
    gen.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    gen.set_defaults(func=cmd_generate)

    prove = subparsers.add_parser("prove", help="Emit a proof from a deterministic sparse tree")
    prove.add_argument("--depth", type=int, required=True, help="Tree depth")
    prove.add_argument("--key", required=True, help="Bit-string key to prove")
    prove.add_argument("--out", default=None, help="Write the proof here instead of stdout")
    prove.set_defaults(func=cmd_prove)

    verify = subparsers.add_parser("verify", help="Check a proof document")
    verify.add_argument("proof", help="Path to a proof JSON file")
    verify.set_defaults(func=cmd_verify)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        return args.func(args)
    except SMTError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
