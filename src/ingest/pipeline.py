"""Load orchestration from the ITIS source into the record store.

This module opens the source and store, pages through taxonomic units,
assembles each unit into a record, and writes it under its TSN. The run
is strictly sequential: each record is fully written before the next row
is assembled.
"""

from __future__ import annotations

from typing import Any, TextIO

from core.config import LoaderConfig
from core.load_types import LoadOptions, LoadSummary
from core.logging_config import get_logger
from ingest.load_progress import LoadProgressTracker
from ingest.lookup_caches import LookupCaches
from ingest.record_assembler import RecordAssembler
from ingest.row_fetcher import RowFetcher
from ingest.source_connection import open_source_connection, warn_missing_indexes
from store.cache_writer import CacheWriter
from store.record_store import RecordStore, open_record_store

_LOGGER = get_logger(__name__)


class LoadPipelineRunner:
    """Runner for one full cache reload."""

    def __init__(
        self,
        options: LoadOptions,
        config: LoaderConfig,
        stream: TextIO | None = None,
    ) -> None:
        self._options = options
        self._config = config
        self._stream = stream

    def run(self) -> LoadSummary:
        """Execute the load and return its summary.

        Raises:
            ItisDependencyError: If the SQLite driver or store library is missing.
            ItisSourceUnavailableError: If the source cannot be opened or counted.
            ItisStoreError: If the store cannot be opened.
        """
        connection = open_source_connection(self._options.source_path)
        try:
            warn_missing_indexes(connection)
            fetcher = RowFetcher(connection, self._config.query_timeout_seconds)
            total_rows = fetcher.count_rows()
            with open_record_store(self._options.store) as store:
                summary = self._load_rows(connection, fetcher, store, total_rows)
        finally:
            connection.close()
        _log_load_completion(self._options, summary)
        return summary

    def _load_rows(
        self,
        connection: Any,
        fetcher: RowFetcher,
        store: RecordStore,
        total_rows: int,
    ) -> LoadSummary:
        caches = LookupCaches.for_connection(connection)
        assembler = RecordAssembler(connection, caches)
        writer = CacheWriter(store)
        tracker = LoadProgressTracker(
            total_rows=total_rows,
            progress_interval=self._config.progress_interval,
            stream=self._stream,
        )
        tracker.log_load_started(self._options.chunk_size)
        failed_offsets: list[int] = []
        fetched_rows = 0
        records_with_failed_lookups = 0
        chunks = fetcher.iter_chunks(total_rows, self._options.chunk_size, failed_offsets)
        for chunk in chunks:
            fetched_rows += len(chunk)
            for row in chunk:
                assembled = assembler.assemble(row)
                if assembled.record.failed_lookups:
                    records_with_failed_lookups += 1
                writer.write(assembled)
                tracker.record_processed()
        return LoadSummary(
            total_rows=total_rows,
            fetched_rows=fetched_rows,
            written_records=writer.written,
            failed_chunks=tuple(failed_offsets),
            failed_writes=writer.failed,
            records_with_failed_lookups=records_with_failed_lookups,
            elapsed_seconds=tracker.elapsed_seconds(),
        )


def load_cache(
    options: LoadOptions,
    config: LoaderConfig,
    stream: TextIO | None = None,
) -> LoadSummary:
    """Reload the record store from an ITIS SQLite export.

    Args:
        options: Source path, store options, and chunk size.
        config: Runtime configuration.
        stream: Console stream for progress dots; stdout when omitted.

    Returns:
        Counts of rows seen and records persisted.

    Raises:
        ItisDependencyError: If the SQLite driver or store library is missing.
        ItisSourceUnavailableError: If the source cannot be opened or counted.
        ItisStoreError: If the store cannot be opened.
    """
    runner = LoadPipelineRunner(options, config, stream)
    return runner.run()


def _log_load_completion(options: LoadOptions, summary: LoadSummary) -> None:
    """Log run completion with contextual counts."""
    log_method = _LOGGER.info if summary.complete else _LOGGER.warning
    log_method(
        "load_completed",
        source_path=str(options.source_path),
        cache_dir=str(options.store.cache_dir),
        store_implementation=options.store.implementation,
        total_rows=summary.total_rows,
        fetched_rows=summary.fetched_rows,
        written_records=summary.written_records,
        failed_chunks=list(summary.failed_chunks),
        failed_writes=summary.failed_writes,
        records_with_failed_lookups=summary.records_with_failed_lookups,
        elapsed_seconds=summary.elapsed_seconds,
    )
