"""Per-run memoizing lookups for rank and kingdom names.

Rank and kingdom ids recur across millions of units, so each distinct id
is queried once per run. Misses are not cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from core.logging_config import get_logger
from ingest.source_connection import sqlite_driver

_LOGGER = get_logger(__name__)

_RANK_NAME_SQL = "select rank_name from taxon_unit_types where rank_id = ? limit 1"
_KINGDOM_NAME_SQL = "select kingdom_name from kingdoms where kingdom_id = ? limit 1"


class MemoizedLookup:
    """Memoizing id to name lookup over a single-column query."""

    def __init__(self, connection: Any, sql: str, name: str) -> None:
        """Create a lookup.

        Args:
            connection: Open source connection.
            sql: Query selecting one value with a single ``?`` parameter.
            name: Lookup name used in log events.
        """
        self._connection = connection
        self._sql = sql
        self._name = name
        self._values: dict[str, str] = {}
        self.query_count = 0

    def resolve(self, lookup_id: str | None) -> str | None:
        """Return the value for an id, querying only on first use.

        Args:
            lookup_id: Id to resolve; ``None`` or blank yields ``None``.

        Returns:
            Resolved value or ``None`` when absent.
        """
        if lookup_id is None or not lookup_id.strip():
            return None
        cached = self._values.get(lookup_id)
        if cached is not None:
            return cached
        value = self._query(lookup_id)
        if value is not None:
            self._values[lookup_id] = value
        return value

    def __len__(self) -> int:
        return len(self._values)

    def _query(self, lookup_id: str) -> str | None:
        sqlite3 = sqlite_driver()
        self.query_count += 1
        try:
            row = self._connection.execute(self._sql, (lookup_id,)).fetchone()
        except sqlite3.Error as error:
            _LOGGER.error("lookup_query_failed", lookup=self._name, id=lookup_id, error=str(error))
            return None
        if row is None or row[0] is None:
            return None
        return str(row[0])


@dataclass
class LookupCaches:
    """Rank and kingdom name caches owned by one load run."""

    rank_names: MemoizedLookup
    kingdom_names: MemoizedLookup

    @classmethod
    def for_connection(cls, connection: Any) -> "LookupCaches":
        """Create empty caches bound to a source connection."""
        return cls(
            rank_names=MemoizedLookup(connection, _RANK_NAME_SQL, "rank_name"),
            kingdom_names=MemoizedLookup(connection, _KINGDOM_NAME_SQL, "kingdom_name"),
        )

    def rank_name(self, rank_id: str | None) -> str | None:
        return self.rank_names.resolve(rank_id)

    def kingdom_name(self, kingdom_id: str | None) -> str | None:
        return self.kingdom_names.resolve(kingdom_id)
