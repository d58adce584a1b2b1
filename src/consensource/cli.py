"""
Command-line interface for the ConsenSource client.

Provides commands for deriving addresses, managing signing keys and
submitting pre-encoded action payloads.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from consensource import __version__
from consensource.config import ClientConfig, LogLevel, set_config
from consensource.core.addressing import EntityType, derive_address
from consensource.core.submitter import Submitter
from consensource.errors import ClientError, UserInputError
from consensource.gateway.rest import RestGateway, validate_gateway_url
from consensource.tx.builder import assemble_batch, assemble_transaction, package
from consensource.tx.signer import TransactionSigner, generate_key, key_file_path


def setup_logging(level: str = "WARNING", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


class CliArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit status 1."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = CliArgumentParser(
        prog="consensource",
        description="ConsenSource CLI",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        type=str.upper,
        help="Logging level",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Address command
    address_parser = subparsers.add_parser("address", help="Derive a state address")
    address_parser.add_argument(
        "entity_type",
        choices=[t.value for t in EntityType],
        help="Kind of entity",
    )
    address_parser.add_argument("identifier", help="Entity identifier or public key")

    # Keygen command
    keygen_parser = subparsers.add_parser("keygen", help="Generate a signing key pair")
    keygen_parser.add_argument(
        "key_name",
        nargs="?",
        help="Name of the key (default: current user)",
    )
    keygen_parser.add_argument("--key-dir", help="Directory to write keys to")
    keygen_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing key files",
    )

    # Submit command
    submit_parser = subparsers.add_parser(
        "submit",
        help="Sign an encoded payload and submit it as one batch",
    )
    submit_parser.add_argument("payload", help="File holding the encoded action payload")
    submit_parser.add_argument(
        "--input",
        dest="inputs",
        action="append",
        default=[],
        metavar="ADDRESS",
        help="Address the action reads (repeatable)",
    )
    submit_parser.add_argument(
        "--output",
        dest="outputs",
        action="append",
        default=[],
        metavar="ADDRESS",
        help="Address the action writes (repeatable)",
    )
    submit_parser.add_argument("-k", "--key", help="Signing key name")
    submit_parser.add_argument("--key-dir", help="Directory holding signing keys")
    submit_parser.add_argument("--url", help="URL to the ConsenSource REST API")
    submit_parser.add_argument(
        "--write",
        metavar="FILE",
        help="Write the batch list to FILE instead of submitting it",
    )
    submit_parser.add_argument(
        "--max-attempts",
        type=int,
        help="Give up after this many status polls",
    )
    submit_parser.add_argument(
        "--timeout",
        type=float,
        help="Give up after waiting this many seconds for a commit",
    )

    return parser


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Overlay command line options on the environment configuration."""
    overrides = {}
    for option, setting in (
        ("url", "gateway_url"),
        ("key", "key_name"),
        ("key_dir", "key_dir"),
        ("max_attempts", "max_poll_attempts"),
        ("timeout", "poll_timeout_seconds"),
        ("log_level", "log_level"),
    ):
        value = getattr(args, option, None)
        if value is not None:
            overrides[setting] = value
    if args.log_json:
        overrides["log_json"] = True

    try:
        return ClientConfig(**overrides)
    except ValueError as e:
        raise UserInputError(f"Invalid configuration: {e}") from e


def run_address(args: argparse.Namespace) -> None:
    print(derive_address(EntityType(args.entity_type), args.identifier))


def run_keygen(args: argparse.Namespace, config: ClientConfig) -> None:
    signer = generate_key(config)
    path = signer.save(args.key_name, config.key_dir, force=args.force)
    print(f"Writing file: {path}")
    print(f"Writing file: {path.with_suffix('.pub')}")


async def run_submit(args: argparse.Namespace, config: ClientConfig) -> None:
    """Sign one payload into a single-transaction batch and submit it."""
    payload_path = Path(args.payload)
    try:
        payload = payload_path.read_bytes()
    except OSError as e:
        raise UserInputError(f"Unable to read payload file {payload_path}: {e}") from e

    if not args.write:
        # Reject a bad URL before touching the key or the network
        validate_gateway_url(config.gateway_url)

    signer = TransactionSigner(config)
    signer.load_key_from_file(str(key_file_path(config.key_name, config.key_dir)))

    transaction = assemble_transaction(payload, signer, args.inputs, args.outputs)
    batch = assemble_batch([transaction], signer)
    batch_list = package([batch])

    if args.write:
        try:
            Path(args.write).write_bytes(batch_list.to_bytes())
        except OSError as e:
            raise UserInputError(f"Unable to write {args.write}: {e}") from e
        print(f"Wrote batch {batch.batch_id} to {args.write}")
        return

    async with RestGateway(config=config) as gateway:
        record = await Submitter(gateway, config).submit_and_wait(batch_list)

    print(f"Batch {record.id} committed")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = build_config(args)
        set_config(config)
        setup_logging(config.log_level.value, config.log_json)

        if args.command == "address":
            run_address(args)
        elif args.command == "keygen":
            run_keygen(args, config)
        elif args.command == "submit":
            asyncio.run(run_submit(args, config))
    except ClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
