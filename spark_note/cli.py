"""
Spark Note command line tool.

    spark-note secret [--length N]
    spark-note commit --value V --secret HEX
    spark-note nullify --value V --commitment HEX --secret HEX
    spark-note spend --value V --commitment HEX --secret HEX
    spark-note check NULLIFIER [NULLIFIER ...]
    spark-note export [--output FILE]
    spark-note import FILE

Exit status: 0 on success, 1 on a Spark error, 2 on usage errors.
"""

from __future__ import annotations
import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from spark_note import __version__
from spark_note.config import SparkConfig, setup_logging
from spark_note.core.secret import Secret
from spark_note.crypto.rng import generate_secret
from spark_note.errors import SparkError
from spark_note.protocol.note import Note, PublicNote
from spark_note.protocol.nullifier import generate_nullifier_for_public
from spark_note.serialization import decode_nullifier_hex, export_nullifier_set, import_nullifier_set
from spark_note.state.store import SqliteNullifierStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spark-note",
        description="Spark note commitments, nullifiers and spent tracking",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", metavar="PATH", help="JSON configuration file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    parser.add_argument("--db", metavar="PATH", help="Spent nullifier database (overrides config)")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("secret", help="Generate a random secret (hex)")
    p.add_argument("--length", type=int, help="Secret length in bytes")

    for name, help_text in (
        ("commit", "Print the public note for a value and secret"),
        ("nullify", "Print the nullifier of a note"),
        ("spend", "Derive a note's nullifier and record it as spent"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--value", type=int, required=True, help="Note value")
        p.add_argument("--secret", required=True, help="Secret (hex)")
        if name != "commit":
            p.add_argument("--commitment", required=True, help="Note commitment (hex)")

    p = sub.add_parser("check", help="Check whether nullifiers are spent")
    p.add_argument("nullifiers", nargs="+", metavar="NULLIFIER", help="Nullifier (hex)")

    p = sub.add_parser("export", help="Export the spent nullifier set as JSON")
    p.add_argument("--output", "-o", metavar="FILE", help="Write to FILE instead of stdout")

    p = sub.add_parser("import", help="Merge an exported nullifier set into the database")
    p.add_argument("file", metavar="FILE", help="Exported JSON file")

    return parser


# ============================================================================
# COMMANDS
# ============================================================================

def _public_note(args: argparse.Namespace) -> PublicNote:
    return PublicNote.from_dict({"value": args.value, "commitment": args.commitment})


def cmd_secret(args: argparse.Namespace, config: SparkConfig) -> int:
    length = args.length if args.length is not None else config.secret.default_length
    with generate_secret(length) as secret:
        print(secret.hex())
    return EXIT_OK


def cmd_commit(args: argparse.Namespace, config: SparkConfig) -> int:
    with Secret.from_hex(args.secret) as secret, Note(args.value, secret) as note:
        print(json.dumps(note.to_public().to_dict()))
    return EXIT_OK


def cmd_nullify(args: argparse.Namespace, config: SparkConfig) -> int:
    public_note = _public_note(args)
    with Secret.from_hex(args.secret) as secret:
        nullifier = generate_nullifier_for_public(public_note, secret)
    print(nullifier.hex())
    return EXIT_OK


async def cmd_spend(args: argparse.Namespace, store: SqliteNullifierStore) -> int:
    public_note = _public_note(args)
    with Secret.from_hex(args.secret) as secret:
        nullifier = generate_nullifier_for_public(public_note, secret)
    await store.add_or_reject(nullifier)
    logger.info(f"Note spent: value={public_note.value} nullifier={nullifier}")
    print(nullifier.hex())
    return EXIT_OK


async def cmd_check(args: argparse.Namespace, store: SqliteNullifierStore) -> int:
    nullifiers = [decode_nullifier_hex(h) for h in args.nullifiers]
    results = await store.check_many(nullifiers)
    for nullifier, spent in zip(nullifiers, results):
        print(f"{nullifier.hex()} {'spent' if spent else 'unspent'}")
    return EXIT_OK


async def cmd_export(args: argparse.Namespace, store: SqliteNullifierStore) -> int:
    payload = export_nullifier_set(await store.export())
    if args.output:
        with open(args.output, 'w') as f:
            f.write(payload)
        logger.info(f"Exported spent nullifiers to {args.output}")
    else:
        print(payload)
    return EXIT_OK


async def cmd_import(args: argparse.Namespace, store: SqliteNullifierStore) -> int:
    with open(args.file, 'rb') as f:
        spent_set = import_nullifier_set(f.read())
    added = await store.merge_set(spent_set)
    print(f"Imported {added} new nullifiers ({spent_set.size()} in file)")
    return EXIT_OK


LOCAL_COMMANDS = {
    "secret": cmd_secret,
    "commit": cmd_commit,
    "nullify": cmd_nullify,
}

STORE_COMMANDS = {
    "spend": cmd_spend,
    "check": cmd_check,
    "export": cmd_export,
    "import": cmd_import,
}


async def _run_store_command(args: argparse.Namespace, config: SparkConfig) -> int:
    db_path = args.db or config.db_path
    async with SqliteNullifierStore(db_path) as store:
        return await STORE_COMMANDS[args.command](args, store)


# ============================================================================
# ENTRY POINT
# ============================================================================

def _load_config(path: Optional[str]) -> SparkConfig:
    if not path:
        return SparkConfig()
    return SparkConfig.load(path)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help(sys.stderr)
        return EXIT_USAGE

    try:
        config = _load_config(args.config)
    except (OSError, ValueError, TypeError) as e:
        print(f"error: cannot load config {args.config}: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.log_level:
        config.log.level = args.log_level

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"error: {error}", file=sys.stderr)
        return EXIT_ERROR

    setup_logging(config.log)

    try:
        if args.command in LOCAL_COMMANDS:
            return LOCAL_COMMANDS[args.command](args, config)
        return asyncio.run(_run_store_command(args, config))
    except SparkError as e:
        print(f"error: {e.error_code()}: {e.message}", file=sys.stderr)
        return EXIT_ERROR
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
