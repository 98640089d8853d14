"""Ancestor chain and child resolution for taxonomic units.

Ancestors are walked through ``parent_tsn`` links up to a root and returned
root first. The walk tracks visited TSNs so malformed parent data fails
with ``ItisCyclicHierarchyError`` instead of looping forever.
"""

from __future__ import annotations

from typing import Any

from core.errors import ItisCyclicHierarchyError
from core.types import RankEntry, TaxonomicUnitRow
from ingest.lookup_caches import LookupCaches
from ingest.source_queries import (
    fetch_child_units,
    fetch_common_names,
    fetch_unit,
    group_common_names,
)


class HierarchyResolver:
    """Build rank entries for ancestors and immediate children."""

    def __init__(self, connection: Any, caches: LookupCaches) -> None:
        self._connection = connection
        self._caches = caches

    def resolve_ancestors(
        self,
        parent_tsn: str | None,
        start_tsn: str | None = None,
    ) -> list[RankEntry]:
        """Return the ancestor chain ending at ``parent_tsn``.

        Args:
            parent_tsn: Parent of the unit being assembled.
            start_tsn: The unit itself, treated as already visited.

        Returns:
            Rank entries ordered from the outermost ancestor to the parent;
            empty when ``parent_tsn`` is absent or unknown.

        Raises:
            ItisCyclicHierarchyError: If a TSN repeats along the chain.
            sqlite3.Error: If a unit query fails.
        """
        path: list[str] = [start_tsn] if start_tsn else []
        visited = set(path)
        chain: list[RankEntry] = []
        current_tsn = parent_tsn
        while current_tsn:
            if current_tsn in visited:
                raise ItisCyclicHierarchyError(current_tsn, tuple(path))
            unit = fetch_unit(self._connection, current_tsn)
            if unit is None:
                break
            visited.add(unit.tsn)
            path.append(unit.tsn)
            chain.append(self.rank_entry(unit))
            current_tsn = unit.parent_tsn
        chain.reverse()
        return chain

    def resolve_children(self, tsn: str) -> list[RankEntry]:
        """Return rank entries for direct children of ``tsn``."""
        return [self.rank_entry(child) for child in fetch_child_units(self._connection, tsn)]

    def rank_entry(self, unit: TaxonomicUnitRow) -> RankEntry:
        """Build a rank entry for one unit row."""
        return RankEntry(
            tsn=unit.tsn,
            rank_id=unit.rank_id,
            rank_name=self._caches.rank_name(unit.rank_id),
            display_name=unit.complete_name,
            kingdom_id=unit.kingdom_id,
            kingdom_name=self._caches.kingdom_name(unit.kingdom_id),
            common_names=group_common_names(fetch_common_names(self._connection, unit.tsn)),
        )
