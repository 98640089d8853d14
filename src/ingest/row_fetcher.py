"""Paginated reads of the ``taxonomic_units`` table.

The source driver materializes whole result sets in memory, so the table
is always read in fixed-size chunks rather than in one select.
"""

from __future__ import annotations

from typing import Any, Iterator

from core.constants import DEFAULT_CHUNK_SIZE, DEFAULT_QUERY_TIMEOUT_SECONDS
from core.errors import ItisSourceUnavailableError
from core.logging_config import get_logger
from core.types import TaxonomicUnitRow
from ingest.source_connection import column_text, sqlite_driver, statement_timeout

_LOGGER = get_logger(__name__)

_COUNT_SQL = "select count(tsn) as row_count from taxonomic_units"
_CHUNK_SQL = "select * from taxonomic_units order by rowid limit ? offset ?"


def iter_chunk_offsets(total_rows: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[int]:
    """Yield chunk start offsets covering ``total_rows``.

    Args:
        total_rows: Number of rows counted in the source.
        chunk_size: Rows per chunk.

    Returns:
        Iterator over offsets ``0, chunk_size, ...`` below ``total_rows``.

    Raises:
        ValueError: If ``chunk_size`` is not positive.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
    return iter(range(0, max(total_rows, 0), chunk_size))


def unit_row_from_sql(row: Any) -> TaxonomicUnitRow:
    """Convert a ``taxonomic_units`` result row into a typed row.

    Args:
        row: ``sqlite3.Row`` from ``taxonomic_units``.

    Returns:
        Typed taxonomic unit row.
    """
    return TaxonomicUnitRow(
        tsn=str(row["tsn"]),
        parent_tsn=column_text(row, "parent_tsn"),
        kingdom_id=column_text(row, "kingdom_id"),
        rank_id=column_text(row, "rank_id"),
        name_usage=column_text(row, "name_usage"),
        unaccept_reason=column_text(row, "unaccept_reason"),
        currency_rating=column_text(row, "currency_rating"),
        completeness_rating=column_text(row, "completeness_rtng"),
        credibility_rating=column_text(row, "credibility_rtng"),
        complete_name=column_text(row, "complete_name"),
        unit_ind1=column_text(row, "unit_ind1"),
        unit_name1=column_text(row, "unit_name1"),
        unit_ind2=column_text(row, "unit_ind2"),
        unit_name2=column_text(row, "unit_name2"),
        unit_ind3=column_text(row, "unit_ind3"),
        unit_name3=column_text(row, "unit_name3"),
        unit_ind4=column_text(row, "unit_ind4"),
        unit_name4=column_text(row, "unit_name4"),
        taxon_author_id=column_text(row, "taxon_author_id"),
    )


class RowFetcher:
    """Count and page through source taxonomic units."""

    def __init__(
        self,
        connection: Any,
        query_timeout_seconds: float = DEFAULT_QUERY_TIMEOUT_SECONDS,
    ) -> None:
        self._connection = connection
        self._query_timeout_seconds = query_timeout_seconds

    def count_rows(self) -> int:
        """Return the number of rows in ``taxonomic_units``.

        Raises:
            ItisSourceUnavailableError: If the count query fails.
        """
        sqlite3 = sqlite_driver()
        try:
            row = self._connection.execute(_COUNT_SQL).fetchone()
        except sqlite3.Error as error:
            raise ItisSourceUnavailableError(
                f"Failed to count taxonomic_units rows: {error}. "
                "Check that the source is an ITIS SQLite export."
            ) from error
        return int(row[0])

    def fetch_chunk(self, offset: int, limit: int) -> list[TaxonomicUnitRow]:
        """Fetch one chunk of rows in stable rowid order.

        Args:
            offset: Zero-based row offset.
            limit: Maximum rows to return.

        Returns:
            Typed rows for the chunk.

        Raises:
            sqlite3.Error: If the query fails or exceeds the timeout.
        """
        _LOGGER.debug("chunk_fetch_started", offset=offset, limit=limit)
        with statement_timeout(self._connection, self._query_timeout_seconds):
            rows = self._connection.execute(_CHUNK_SQL, (limit, offset)).fetchall()
        return [unit_row_from_sql(row) for row in rows]

    def iter_chunks(
        self,
        total_rows: int,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        failed_offsets: list[int] | None = None,
    ) -> Iterator[list[TaxonomicUnitRow]]:
        """Yield successive chunks, skipping chunks whose query fails.

        Args:
            total_rows: Row count taken at the start of the run.
            chunk_size: Rows per chunk.
            failed_offsets: Optional list collecting offsets of failed chunks.

        Returns:
            Iterator over fetched chunks.
        """
        sqlite3 = sqlite_driver()
        for offset in iter_chunk_offsets(total_rows, chunk_size):
            try:
                chunk = self.fetch_chunk(offset, chunk_size)
            except sqlite3.Error as error:
                _LOGGER.error(
                    "chunk_fetch_failed",
                    offset=offset,
                    limit=chunk_size,
                    error=str(error),
                )
                if failed_offsets is not None:
                    failed_offsets.append(offset)
                continue
            yield chunk
