"""Unit tests for memoized rank and kingdom lookups."""

from __future__ import annotations

from pathlib import Path

from ingest.lookup_caches import LookupCaches
from ingest.source_connection import open_source_connection
from tests.itis_fixtures import build_itis_database


def test_rank_name_queries_each_id_once(tmp_path: Path) -> None:
    """Repeated rank ids should hit the source exactly once."""
    connection = open_source_connection(build_itis_database(tmp_path / "itis.sqlite"))
    statements: list[str] = []
    connection.set_trace_callback(statements.append)
    caches = LookupCaches.for_connection(connection)

    names = [caches.rank_name("220") for _ in range(3)]
    connection.close()

    assert names == ["Species", "Species", "Species"]
    assert len([sql for sql in statements if "taxon_unit_types" in sql]) == 1


def test_kingdom_name_resolves_and_memoizes(tmp_path: Path) -> None:
    """Kingdom names should be cached after the first lookup."""
    connection = open_source_connection(build_itis_database(tmp_path / "itis.sqlite"))
    caches = LookupCaches.for_connection(connection)

    caches.kingdom_name("3")
    name = caches.kingdom_name("3")
    connection.close()

    assert name == "Plantae"
    assert caches.kingdom_names.query_count == 1


def test_missing_id_is_not_cached(tmp_path: Path) -> None:
    """Misses should return None and be queried again next time."""
    connection = open_source_connection(build_itis_database(tmp_path / "itis.sqlite"))
    caches = LookupCaches.for_connection(connection)

    first = caches.rank_name("999")
    caches.rank_name("999")
    connection.close()

    assert first is None
    assert caches.rank_names.query_count == 2
    assert len(caches.rank_names) == 0


def test_blank_id_skips_query(tmp_path: Path) -> None:
    """Blank and null ids should resolve to None without a query."""
    connection = open_source_connection(build_itis_database(tmp_path / "itis.sqlite"))
    caches = LookupCaches.for_connection(connection)

    results = (caches.rank_name(None), caches.rank_name("  "))
    connection.close()

    assert results == (None, None)
    assert caches.rank_names.query_count == 0
