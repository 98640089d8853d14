"""Unit tests for ancestor and child resolution."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from core.errors import ItisCyclicHierarchyError
from ingest.hierarchy import HierarchyResolver
from ingest.lookup_caches import LookupCaches
from ingest.source_connection import open_source_connection
from tests.itis_fixtures import (
    GENUS_TSN,
    ROOT_TSN,
    SIBLING_TSN,
    SPECIES_TSN,
    SUBKINGDOM_TSN,
    SYNONYM_TSN,
    build_itis_database,
    execute_sql,
)


def _resolver(db_path: Path) -> tuple[HierarchyResolver, Any]:
    connection = open_source_connection(db_path)
    return HierarchyResolver(connection, LookupCaches.for_connection(connection)), connection


def test_resolve_ancestors_orders_root_first(tmp_path: Path) -> None:
    """Ancestors should run from the root down to the direct parent."""
    resolver, connection = _resolver(build_itis_database(tmp_path / "itis.sqlite"))

    chain = resolver.resolve_ancestors(GENUS_TSN, start_tsn=SPECIES_TSN)
    connection.close()

    assert [entry.tsn for entry in chain] == [ROOT_TSN, SUBKINGDOM_TSN, GENUS_TSN]
    assert [entry.rank_name for entry in chain] == ["Kingdom", "Subkingdom", "Genus"]


def test_resolve_ancestors_is_empty_for_root(tmp_path: Path) -> None:
    """A root unit without parent should have no ancestors."""
    resolver, connection = _resolver(build_itis_database(tmp_path / "itis.sqlite"))

    chain = resolver.resolve_ancestors(None, start_tsn=ROOT_TSN)
    connection.close()

    assert chain == []


def test_resolve_ancestors_stops_at_unknown_parent(tmp_path: Path) -> None:
    """A parent TSN of zero should end the walk without error."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")
    execute_sql(db_path, "update taxonomic_units set parent_tsn = 0 where tsn = ?", (202422,))
    resolver, connection = _resolver(db_path)

    chain = resolver.resolve_ancestors(SUBKINGDOM_TSN, start_tsn=GENUS_TSN)
    connection.close()

    assert [entry.tsn for entry in chain] == [ROOT_TSN, SUBKINGDOM_TSN]


def test_resolve_ancestors_raises_for_cycle(tmp_path: Path) -> None:
    """A parent loop should raise instead of walking forever."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")
    execute_sql(db_path, "update taxonomic_units set parent_tsn = ? where tsn = ?", (28727, 202422))
    resolver, connection = _resolver(db_path)

    with pytest.raises(ItisCyclicHierarchyError) as error_info:
        resolver.resolve_ancestors(SUBKINGDOM_TSN, start_tsn=GENUS_TSN)
    connection.close()

    assert error_info.value.tsn == GENUS_TSN


def test_resolve_children_lists_direct_children(tmp_path: Path) -> None:
    """Children should include every unit naming the TSN as parent."""
    resolver, connection = _resolver(build_itis_database(tmp_path / "itis.sqlite"))

    children = resolver.resolve_children(GENUS_TSN)
    connection.close()

    assert {entry.tsn for entry in children} == {SPECIES_TSN, SYNONYM_TSN, SIBLING_TSN}


def test_rank_entry_groups_common_names(tmp_path: Path) -> None:
    """Rank entries should carry common names grouped by language."""
    resolver, connection = _resolver(build_itis_database(tmp_path / "itis.sqlite"))

    entry = resolver.resolve_ancestors(SPECIES_TSN, start_tsn=None)[-1]
    connection.close()

    assert entry.common_names == {"en": ("Red Maple", "Swamp Maple"), "fr": ("Érable rouge",)}
