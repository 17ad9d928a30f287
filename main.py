"""
catalog-norm - Main Entry Point

Search-field maintenance for catalog records.

Usage:
    # Write name_norm / name_norm_ngrams / aliases_norm on every record
    python main.py normalize

    # Preview batch layout without writing
    python main.py normalize --dry-run

    # One-time cleanup: delete a field from every record
    python main.py remove-field legacy_name_norm
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import structlog

from catalog_norm.config import Settings, get_settings
from catalog_norm.core import CatalogNormError, DependencyContainer, EnumerationError
from catalog_norm.maintenance import run_field_removal, run_normalization

EXIT_OK = 0
EXIT_BATCH_FAILURES = 1
EXIT_FATAL = 2

logger = structlog.get_logger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure structured logging for the CLI process."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level),
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    # Options shared by every command, accepted after the command name.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--table",
        help="Catalog table (default: CATALOG_TABLE setting)",
    )
    common.add_argument(
        "--dry-run",
        action="store_true",
        help="Build batches and report them without committing",
    )

    parser = argparse.ArgumentParser(
        description="Maintain normalized search fields on catalog records",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "normalize",
        parents=[common],
        help="Write name_norm, name_norm_ngrams and aliases_norm",
    )
    remove = subparsers.add_parser(
        "remove-field",
        parents=[common],
        help="Delete one field from every record",
    )
    remove.add_argument("field", help="Field to delete")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute one maintenance command and return the process exit code."""
    if args.table:
        settings = settings.model_copy(update={"catalog_table": args.table})

    async with DependencyContainer(settings) as container:
        if args.command == "normalize":
            summary = await run_normalization(
                container.source,
                container.sink,
                settings=settings,
                dry_run=args.dry_run,
            )
        else:
            summary = await run_field_removal(
                container.source,
                container.sink,
                args.field,
                settings=settings,
                dry_run=args.dry_run,
            )

    if summary.succeeded:
        logger.info("run_completed", command=args.command, **summary.as_dict())
        return EXIT_OK

    logger.error(
        "run_completed_with_failures",
        command=args.command,
        failed=[outcome.batch_id for outcome in summary.failed_batches],
        **summary.as_dict(),
    )
    return EXIT_BATCH_FAILURES


def main(argv: list[str] | None = None) -> int:
    """Main entry point for running maintenance commands."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    logger.info(
        "starting_catalog_norm",
        command=args.command,
        environment=settings.app_env,
        table=args.table or settings.catalog_table,
        dry_run=args.dry_run,
    )

    try:
        return asyncio.run(run(args, settings))
    except EnumerationError as e:
        logger.error("run_failed", reason="enumeration", error=str(e))
        return EXIT_FATAL
    except CatalogNormError as e:
        logger.error("run_failed", error=str(e), error_type=type(e).__name__)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
