"""ITIS loader CLI entry point.

This module maps the two positional arguments (source database and cache
directory) plus store options onto a full cache reload. Startup failures
print the usage message and exit with a status that identifies the cause.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import NoReturn, Sequence

from core.config import LoaderConfig
from core.constants import (
    EXIT_BAD_ARGUMENTS,
    EXIT_MISSING_DRIVER,
    EXIT_OK,
    EXIT_RUN_FAILED,
    EXIT_UNREADABLE_SOURCE,
    EXIT_VERIFICATION_FAILED,
    SUPPORTED_STORE_IMPLEMENTATIONS,
)
from core.errors import (
    ItisConfigError,
    ItisDependencyError,
    ItisLoaderError,
    ItisSourceUnavailableError,
)
from core.load_types import LoadOptions, StoreOptions
from core.logging_config import configure_logging
from core.store_properties import apply_store_properties, load_store_properties
from core.verification import render_verification_report, verify_cache_at
from ingest.pipeline import load_cache
from ingest.source_connection import check_source_file, create_recommended_indexes, sqlite_driver


class _UsageError(Exception):
    """Raised by the parser instead of exiting with argparse's status."""


class _LoaderArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise _UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = _LoaderArgumentParser(
        prog="itis-loader",
        description="Load an ITIS SQLite export into a TSN-keyed record cache",
    )
    parser.add_argument("source_db", help="Absolute path of the ITIS SQLite database")
    parser.add_argument("cache_dir", help="Path of the destination cache directory")
    parser.add_argument(
        "--chunk-size",
        type=int,
        help="Rows fetched per source query (default: ITIS_CHUNK_SIZE or 4000)",
    )
    parser.add_argument(
        "--store",
        choices=SUPPORTED_STORE_IMPLEMENTATIONS,
        help="Record store implementation (default: ITIS_STORE_IMPL or caching)",
    )
    parser.add_argument(
        "--log-file-size-mb",
        type=int,
        help="Store log segment size in MB (default: ITIS_LOG_FILE_SIZE_MB or 128)",
    )
    parser.add_argument(
        "--buffered",
        action="store_true",
        help="Buffer store writes instead of writing each record through",
    )
    parser.add_argument("--store-config", help="YAML file with store properties")
    parser.add_argument(
        "--create-indexes",
        action="store_true",
        help="Create the secondary indexes the loader's joins rely on before loading",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Compare stored keys with source TSNs after the load",
    )
    parser.add_argument(
        "--log-level",
        choices=("debug", "info", "warning", "error"),
        default="info",
        help="Minimum structured log level",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the loader CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except _UsageError as error:
        return _usage(parser, str(error), EXIT_BAD_ARGUMENTS)
    configure_logging(getattr(logging, args.log_level.upper()))
    source_path = Path(args.source_db).expanduser()
    try:
        sqlite_driver()
    except ItisDependencyError as error:
        return _usage(parser, str(error), EXIT_MISSING_DRIVER)
    try:
        check_source_file(source_path)
    except ItisSourceUnavailableError as error:
        return _usage(parser, str(error), EXIT_UNREADABLE_SOURCE)
    try:
        config = LoaderConfig.from_env()
        options = _build_load_options(args, source_path, config)
    except ItisConfigError as error:
        return _usage(parser, str(error), EXIT_RUN_FAILED)
    return _run_load(args, options, replace(config, chunk_size=options.chunk_size))


def _build_load_options(
    args: argparse.Namespace,
    source_path: Path,
    config: LoaderConfig,
) -> LoadOptions:
    """Merge environment config, the store property file, and CLI flags.

    Raises:
        ItisConfigError: If any configuration value is invalid.
    """
    store_options = StoreOptions(
        cache_dir=Path(args.cache_dir).expanduser(),
        no_caching=config.no_caching,
        implementation=config.store_implementation,
        log_file_size_mb=config.log_file_size_mb,
    )
    if args.store_config:
        store_options = apply_store_properties(
            store_options, load_store_properties(args.store_config)
        )
    store_options = replace(store_options, cache_dir=Path(args.cache_dir).expanduser())
    if args.store:
        store_options = replace(store_options, implementation=args.store)
    if args.log_file_size_mb is not None:
        if args.log_file_size_mb <= 0:
            raise ItisConfigError("--log-file-size-mb must be > 0.")
        store_options = replace(store_options, log_file_size_mb=args.log_file_size_mb)
    if args.buffered:
        store_options = replace(store_options, no_caching=False)
    chunk_size = config.chunk_size if args.chunk_size is None else args.chunk_size
    if chunk_size <= 0:
        raise ItisConfigError("--chunk-size must be > 0.")
    return LoadOptions(source_path=source_path, store=store_options, chunk_size=chunk_size)


def _run_load(args: argparse.Namespace, options: LoadOptions, config: LoaderConfig) -> int:
    """Run index creation, the load, and optional verification.

    Returns:
        Exit code.
    """
    try:
        if args.create_indexes:
            created = create_recommended_indexes(options.source_path)
            print(f"Indexes created: {len(created)}")
        summary = load_cache(options, config)
        print(f"\nRecords written: {summary.written_records} of {summary.total_rows}")
        if not args.verify:
            return EXIT_OK
        report = verify_cache_at(options.source_path, options.store)
    except ItisDependencyError as error:
        print(f"ERROR: {error}", file=sys.stderr)
        return EXIT_MISSING_DRIVER
    except ItisLoaderError as error:
        print(f"ERROR: {error}", file=sys.stderr)
        return EXIT_RUN_FAILED
    print(render_verification_report(report))
    return EXIT_OK if report.passed else EXIT_VERIFICATION_FAILED


def _usage(parser: argparse.ArgumentParser, message: str, exit_code: int) -> int:
    sys.stderr.write(f"\n\tERROR: {message}\n\n")
    parser.print_usage(sys.stderr)
    return exit_code
