"""Typed models for load runs, store options, and verification."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from core.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LOG_FILE_SIZE_MB,
    DEFAULT_NO_CACHING,
    DEFAULT_STORE_IMPLEMENTATION,
)


@dataclass(frozen=True)
class StoreOptions:
    """Named options for the destination record store.

    Attributes:
        cache_dir: Cache directory location.
        no_caching: Write every record through to disk immediately.
        implementation: Store implementation selector.
        log_file_size_mb: Log segment size in megabytes.
    """

    cache_dir: Path
    no_caching: bool = DEFAULT_NO_CACHING
    implementation: str = DEFAULT_STORE_IMPLEMENTATION
    log_file_size_mb: int = DEFAULT_LOG_FILE_SIZE_MB


@dataclass(frozen=True)
class LoadOptions:
    """Options for one full cache load.

    Attributes:
        source_path: Path to the ITIS SQLite export.
        store: Destination store options.
        chunk_size: Rows per paginated source query.
    """

    source_path: Path
    store: StoreOptions
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class LoadSummary:
    """Counts reported at the end of a load run.

    Attributes:
        total_rows: Rows counted in the source at start.
        fetched_rows: Rows returned by successful chunk queries.
        written_records: Records persisted to the store.
        failed_chunks: Offsets of chunk queries that failed.
        failed_writes: Number of records dropped on write failure.
        records_with_failed_lookups: Records persisted with a failed lookup.
        elapsed_seconds: Wall-clock duration of the run.
    """

    total_rows: int
    fetched_rows: int
    written_records: int
    failed_chunks: tuple[int, ...] = ()
    failed_writes: int = 0
    records_with_failed_lookups: int = 0
    elapsed_seconds: float = 0.0

    @property
    def complete(self) -> bool:
        """Return whether every counted row was persisted."""
        return self.written_records == self.total_rows


@dataclass(frozen=True)
class VerificationReport:
    """Comparison of source TSNs against stored keys.

    Attributes:
        source_count: Distinct TSNs found in the source.
        stored_count: Keys present in the store.
        missing_keys: Source TSNs with no stored record.
        unexpected_keys: Stored keys with no source row.
        mismatched_keys: Stored keys whose payload names another TSN.
    """

    source_count: int
    stored_count: int
    missing_keys: tuple[str, ...] = ()
    unexpected_keys: tuple[str, ...] = ()
    mismatched_keys: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        """Return whether the store matches the source exactly."""
        return not (self.missing_keys or self.unexpected_keys or self.mismatched_keys)
