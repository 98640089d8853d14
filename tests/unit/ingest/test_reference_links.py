"""Unit tests for reference link dispatch."""

from __future__ import annotations

from pathlib import Path

from ingest.reference_links import resolve_reference_lists
from ingest.source_connection import open_source_connection
from tests.itis_fixtures import SIBLING_TSN, SPECIES_TSN, build_itis_database, execute_sql


def test_resolve_reference_lists_dispatches_by_prefix(tmp_path: Path) -> None:
    """PUB, SRC, and EXP links should fill their own lists."""
    connection = open_source_connection(build_itis_database(tmp_path / "itis.sqlite"))

    lists = resolve_reference_lists(connection, SPECIES_TSN)
    connection.close()

    assert [publication.title for publication in lists.publications] == [
        "Manual of Vascular Plants"
    ]
    assert [source.source for source in lists.other_sources] == ["NRCS PLANTS"]
    assert [expert.expert for expert in lists.experts] == ["A. Botanist"]


def test_resolve_reference_lists_ignores_unknown_prefix(tmp_path: Path) -> None:
    """Links with an unknown prefix should leave every list untouched."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")
    execute_sql(
        db_path,
        "insert into reference_links (tsn, doc_id_prefix, documentation_id) values (?, ?, ?)",
        (183833, "XYZ", 42),
    )
    connection = open_source_connection(db_path)

    lists = resolve_reference_lists(connection, SIBLING_TSN)
    connection.close()

    assert (lists.publications, lists.other_sources, lists.experts) == ((), (), ())


def test_resolve_reference_lists_keeps_last_link_of_a_type(tmp_path: Path) -> None:
    """A second link of one type should replace the first one's list."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")
    execute_sql(
        db_path,
        "insert into reference_links (tsn, doc_id_prefix, documentation_id) values (?, ?, ?)",
        (28728, "PUB", 43),
    )
    connection = open_source_connection(db_path)

    lists = resolve_reference_lists(connection, SPECIES_TSN)
    connection.close()

    assert [publication.title for publication in lists.publications] == [
        "Synonymized Checklist"
    ]
