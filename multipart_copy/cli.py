"""Command-line interface for the multipart copy tool.

Provides argument parsing and main entry point for copying an object
from the command line.
"""

import argparse
import sys
import uuid
from datetime import datetime
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from multipart_copy.backend import S3StorageBackend
from multipart_copy.config import ConfigError, load_settings
from multipart_copy.errors import InvalidArgument, MultipartCopyError
from multipart_copy.logging_setup import setup_logging
from multipart_copy.models import CopySettings, Location, TransferOptions, TransferRequest
from multipart_copy.orchestrator import TransferOrchestrator
from multipart_copy.partition import DEFAULT_PART_SIZE, MAX_PART_COUNT, count_partitions
from multipart_copy.reporters import ConsoleReporter, JsonReporter, Reporter
from multipart_copy.retry import RetryExhausted
from multipart_copy.s3_client import build_s3_client


class CompositeReporter(Reporter):
    """Reporter that delegates to multiple reporters.

    Allows using both ConsoleReporter and JsonReporter simultaneously.
    """

    def __init__(self, reporters: list[Reporter]):
        self._reporters = reporters

    def on_transfer_start(self, request) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_transfer_start(request)

    def on_state_change(self, state) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_state_change(state)

    def on_part_complete(self, part) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_part_complete(part)

    def on_transfer_complete(self, result) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_transfer_complete(result)

    def on_transfer_failed(self, error) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_transfer_failed(error)


def parse_location(value: str) -> Location:
    """Parse ``bucket/key`` or ``s3://bucket/key`` into a Location."""
    path = value[len("s3://"):] if value.startswith("s3://") else value
    bucket, _, key = path.partition("/")
    if not bucket or not key:
        raise argparse.ArgumentTypeError(f"Expected bucket/key, got '{value}'")
    return Location(bucket=bucket, key=key)


def parse_metadata_item(value: str) -> tuple[str, str]:
    """Parse a ``KEY=VALUE`` metadata argument."""
    key, sep, item = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{value}'")
    return key, item


def parse_positive_int(value: str) -> int:
    """Parse an integer of at least 1."""
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Expected an integer, got '{value}'") from e
    if number < 1:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {number}")
    return number


def parse_expires(value: str) -> datetime:
    """Parse an ISO 8601 expiration timestamp."""
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Expected an ISO 8601 timestamp, got '{value}'") from e


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="multipart-copy",
        description="Copy a large S3 object in parallel byte-range parts",
    )

    parser.add_argument("source", type=parse_location, help="Source object (bucket/key)")
    parser.add_argument("destination", type=parse_location, help="Destination object (bucket/key)")

    parser.add_argument(
        "-c", "--config",
        default="multipart-copy.json",
        help="Path to configuration file (default: multipart-copy.json)",
    )

    parser.add_argument(
        "-s", "--size",
        type=int,
        metavar="BYTES",
        help="Source object size; looked up with HeadObject when omitted",
    )

    parser.add_argument(
        "--part-size",
        type=int,
        metavar="BYTES",
        help=f"Target part size (default: {DEFAULT_PART_SIZE})",
    )

    parser.add_argument(
        "--max-concurrency",
        type=parse_positive_int,
        metavar="N",
        help="Maximum parallel part copies (default: all parts at once)",
    )

    object_group = parser.add_argument_group("copied object settings")
    object_group.add_argument("--acl", help="Canned ACL (default: private)")
    object_group.add_argument("--expires", type=parse_expires, metavar="TIMESTAMP")
    object_group.add_argument("--content-type")
    object_group.add_argument("--content-disposition")
    object_group.add_argument("--content-encoding")
    object_group.add_argument("--content-language")
    object_group.add_argument("--cache-control")
    object_group.add_argument("--sse", dest="server_side_encryption", help="Server-side encryption")
    object_group.add_argument(
        "--metadata",
        type=parse_metadata_item,
        action="append",
        metavar="KEY=VALUE",
        help="User metadata entry; may be repeated",
    )

    parser.add_argument(
        "--context",
        help="Correlation id attached to log records (default: random)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress per-part output, show only the result",
    )

    parser.add_argument(
        "-j", "--json-output",
        metavar="PATH",
        help="Write JSON result to file",
    )

    parser.add_argument(
        "--github-actions",
        action="store_true",
        help="Enable GitHub Actions output mode",
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines",
    )

    return parser.parse_args(argv)


def create_reporters(args: argparse.Namespace) -> list[Reporter]:
    """Create reporters based on command-line arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        List of configured reporters
    """
    reporters: list[Reporter] = [ConsoleReporter(quiet=args.quiet)]

    if args.json_output or args.github_actions:
        reporters.append(JsonReporter(
            output_path=args.json_output,
            github_output=args.github_actions,
        ))

    return reporters


def build_request(args: argparse.Namespace, object_size: int) -> TransferRequest:
    """Build the transfer request from parsed arguments."""
    options = TransferOptions(
        acl=args.acl,
        expires=args.expires,
        content_type=args.content_type,
        content_disposition=args.content_disposition,
        content_encoding=args.content_encoding,
        content_language=args.content_language,
        cache_control=args.cache_control,
        server_side_encryption=args.server_side_encryption,
        metadata=dict(args.metadata) if args.metadata else None,
    )
    return TransferRequest(
        source=args.source,
        destination=args.destination,
        object_size=object_size,
        part_size=args.part_size,
        options=options,
    )


def connection_count(settings: CopySettings, object_size: int, part_size: int) -> int:
    """Parallel requests the copy will make: the bound, or one per part."""
    if settings.max_concurrency:
        return settings.max_concurrency
    return min(count_partitions(object_size, part_size), MAX_PART_COUNT)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for a completed copy, 1 for a failed copy,
        2 for configuration or usage errors
    """
    args = parse_args(argv)
    setup_logging(args.log_level, json_logs=args.json_logs)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    if args.max_concurrency is not None:
        settings.max_concurrency = args.max_concurrency

    object_size = args.size
    if object_size is None:
        lookup = S3StorageBackend(
            build_s3_client(settings),
            retry_attempts=settings.retry_attempts,
        )
        try:
            object_size = lookup.object_size(args.source)
        except (BotoCoreError, ClientError, RetryExhausted) as e:
            print(f"Could not read size of {args.source}: {e}", file=sys.stderr)
            return 2

    part_size = args.part_size or settings.part_size or DEFAULT_PART_SIZE
    backend = S3StorageBackend(
        build_s3_client(
            settings,
            max_connections=connection_count(settings, object_size, part_size),
        ),
        retry_attempts=settings.retry_attempts,
    )

    reporters = create_reporters(args)
    if len(reporters) == 1:
        reporter = reporters[0]
    else:
        reporter = CompositeReporter(reporters)

    orchestrator = TransferOrchestrator(
        backend,
        reporter=reporter,
        max_concurrency=settings.max_concurrency,
        default_part_size=settings.part_size or DEFAULT_PART_SIZE,
    )

    try:
        orchestrator.transfer(
            build_request(args, object_size),
            context=args.context or uuid.uuid4().hex,
        )
    except InvalidArgument:
        return 2
    except MultipartCopyError:
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
