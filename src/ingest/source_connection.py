"""Source database access for the ITIS SQLite export.

This module opens the read-only source connection, converts raw column
values into the string-typed form used by records, and checks the
secondary indexes the assembler's joins rely on.
"""

from __future__ import annotations

import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from core.constants import RECOMMENDED_INDEXES
from core.errors import ItisDependencyError, ItisSourceUnavailableError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


def sqlite_driver() -> Any:
    """Return the ``sqlite3`` driver module.

    Returns:
        Imported ``sqlite3`` module.

    Raises:
        ItisDependencyError: If the interpreter was built without SQLite.
    """
    try:
        import sqlite3
    except ImportError as error:
        raise ItisDependencyError(
            "The sqlite3 driver is unavailable in this Python build. "
            "Install the SQLite development libraries and rebuild Python, "
            "or use an interpreter that ships the _sqlite3 extension."
        ) from error
    return sqlite3


def check_source_file(source_path: Path) -> None:
    """Validate that the source database file exists and is readable.

    Args:
        source_path: Path to the SQLite export.

    Raises:
        ItisSourceUnavailableError: If the file is missing or unreadable.
    """
    if not source_path.is_file() or not os.access(source_path, os.R_OK):
        raise ItisSourceUnavailableError(
            f"Source database does not exist or cannot be read: {source_path}. "
            "Download and unpack the ITIS SQLite export, then pass its absolute path."
        )


def open_source_connection(source_path: Path) -> Any:
    """Open a read-only connection to the source database.

    Args:
        source_path: Path to the SQLite export.

    Returns:
        Open ``sqlite3.Connection`` with row access by column name.

    Raises:
        ItisDependencyError: If the SQLite driver is missing.
        ItisSourceUnavailableError: If the database cannot be opened.
    """
    sqlite3 = sqlite_driver()
    check_source_file(source_path)
    uri = f"{source_path.resolve().as_uri()}?mode=ro"
    try:
        connection = sqlite3.connect(uri, uri=True)
        connection.execute("select count(*) from sqlite_master").fetchone()
    except sqlite3.Error as error:
        raise ItisSourceUnavailableError(
            f"Failed to open source database at {source_path}: {error}. "
            "Check that the file is a valid SQLite database."
        ) from error
    connection.row_factory = sqlite3.Row
    _LOGGER.info("source_opened", source_path=str(source_path))
    return connection


@contextmanager
def statement_timeout(connection: Any, timeout_seconds: float) -> Iterator[None]:
    """Interrupt statements that run longer than a deadline.

    SQLite has no per-statement timeout, so the progress handler aborts the
    running statement once the deadline passes; the statement then raises
    ``sqlite3.OperationalError: interrupted``. A zero timeout disables it.

    Args:
        connection: Open SQLite connection.
        timeout_seconds: Maximum statement duration.
    """
    if timeout_seconds <= 0:
        yield
        return
    deadline = time.monotonic() + timeout_seconds

    def _abort_after_deadline() -> int:
        return 1 if time.monotonic() > deadline else 0

    connection.set_progress_handler(_abort_after_deadline, 10_000)
    try:
        yield
    finally:
        connection.set_progress_handler(None, 0)


def column_text(row: Any, column: str) -> str | None:
    """Read a column as text, keeping ``None`` for SQL NULL.

    Args:
        row: ``sqlite3.Row`` result.
        column: Column name.

    Returns:
        String value or ``None``.
    """
    value = row[column]
    if value is None:
        return None
    return str(value)


def find_missing_indexes(connection: Any) -> list[tuple[str, str, str]]:
    """Return recommended indexes that are absent from the source.

    An index counts as present when any index on the table has the column
    as its first key column.

    Args:
        connection: Open SQLite connection.

    Returns:
        ``(index_name, table, column)`` rows that are missing.
    """
    missing: list[tuple[str, str, str]] = []
    for index_name, table, column in RECOMMENDED_INDEXES:
        if not _has_leading_index(connection, table, column):
            missing.append((index_name, table, column))
    return missing


def warn_missing_indexes(connection: Any) -> list[tuple[str, str, str]]:
    """Log one warning per missing recommended index."""
    missing = find_missing_indexes(connection)
    for index_name, table, column in missing:
        _LOGGER.warning(
            "source_index_missing",
            index_name=index_name,
            table=table,
            column=column,
            hint="run with --create-indexes; loads are very slow without it",
        )
    return missing


def create_recommended_indexes(source_path: Path) -> list[str]:
    """Create missing recommended indexes on the source database.

    Args:
        source_path: Path to the SQLite export; must be writable.

    Returns:
        Names of indexes that were created.

    Raises:
        ItisSourceUnavailableError: If the database cannot be modified.
    """
    sqlite3 = sqlite_driver()
    check_source_file(source_path)
    created: list[str] = []
    try:
        connection = sqlite3.connect(str(source_path))
        try:
            for index_name, table, column in find_missing_indexes(connection):
                connection.execute(
                    f'CREATE INDEX IF NOT EXISTS "{index_name}" ON "{table}" ("{column}")'
                )
                created.append(index_name)
            connection.commit()
        finally:
            connection.close()
    except sqlite3.Error as error:
        raise ItisSourceUnavailableError(
            f"Failed to create indexes on {source_path}: {error}. "
            "Make sure the database file is writable."
        ) from error
    for index_name in created:
        _LOGGER.info("source_index_created", index_name=index_name)
    return created


def _has_leading_index(connection: Any, table: str, column: str) -> bool:
    # integer primary keys alias the rowid and never appear in index_list
    for column_row in connection.execute(f'PRAGMA table_info("{table}")').fetchall():
        if column_row[1] == column and column_row[5] == 1:
            return True
    index_rows = connection.execute(f'PRAGMA index_list("{table}")').fetchall()
    for index_row in index_rows:
        index_name = index_row[1]
        info_rows = connection.execute(f'PRAGMA index_info("{index_name}")').fetchall()
        if info_rows and info_rows[0][2] == column:
            return True
    return False
