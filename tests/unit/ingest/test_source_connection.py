"""Unit tests for source database access helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from core.constants import RECOMMENDED_INDEXES
from core.errors import ItisSourceUnavailableError
from ingest.source_connection import (
    check_source_file,
    create_recommended_indexes,
    find_missing_indexes,
    open_source_connection,
)
from tests.itis_fixtures import build_itis_database


def test_check_source_file_raises_for_missing_file(tmp_path: Path) -> None:
    """A missing source should raise an unavailable error."""
    with pytest.raises(ItisSourceUnavailableError, match="does not exist"):
        check_source_file(tmp_path / "missing.sqlite")


def test_open_source_connection_rejects_non_sqlite_file(tmp_path: Path) -> None:
    """A file that is not a SQLite database should fail to open."""
    bogus_path = tmp_path / "itis.sqlite"
    bogus_path.write_text("not a database " * 100, encoding="utf-8")

    with pytest.raises(ItisSourceUnavailableError):
        open_source_connection(bogus_path)


def test_open_source_connection_is_read_only(tmp_path: Path) -> None:
    """The source connection should refuse writes."""
    connection = open_source_connection(build_itis_database(tmp_path / "itis.sqlite"))

    with pytest.raises(sqlite3.OperationalError, match="readonly"):
        connection.execute("delete from kingdoms")
    connection.close()


def test_find_missing_indexes_reports_unindexed_columns(tmp_path: Path) -> None:
    """A bare export should miss every index except the primary key."""
    connection = open_source_connection(build_itis_database(tmp_path / "itis.sqlite"))

    missing = find_missing_indexes(connection)
    connection.close()

    missing_names = [index_name for index_name, _, _ in missing]
    assert len(missing_names) == len(RECOMMENDED_INDEXES) - 1
    assert "taxonomic_units_tsn_index" not in missing_names


def test_create_recommended_indexes_is_idempotent(tmp_path: Path) -> None:
    """Creating indexes twice should only create them on the first run."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")

    created = create_recommended_indexes(db_path)
    created_again = create_recommended_indexes(db_path)

    assert len(created) == len(RECOMMENDED_INDEXES) - 1
    assert created_again == []
