"""Apache Lance backed record store.

Payloads are appended as ``(key, sequence, payload)`` rows to a Lance
dataset in the cache directory. The log file size option caps the bytes
written per Lance data file. Rows are appended in batches, small ones when
writing through, and closing the store compacts the appended fragments
and drops superseded dataset versions. Reads return the row with the
highest sequence for a key, so the latest write wins.
"""

from __future__ import annotations

import json
from datetime import timedelta
from typing import Any, Iterator, Mapping

from core.constants import LANCE_DIR_NAME, LANCE_FLUSH_ROWS, LANCE_WRITE_THROUGH_ROWS
from core.errors import ItisDependencyError, ItisStoreError
from core.load_types import StoreOptions
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

_BYTES_PER_MB = 1024 * 1024


class LanceRecordStore:
    """Key-value store persisted as an append-only Lance dataset."""

    def __init__(self, options: StoreOptions, flush_rows: int | None = None) -> None:
        """Open or create the Lance dataset.

        Args:
            options: Store configuration.
            flush_rows: Rows buffered per append; defaults to a small batch when
                writing through and a large one otherwise.

        Raises:
            ItisDependencyError: If lance or pyarrow is not installed.
            ItisStoreError: If an existing dataset cannot be read.
        """
        self._lance, self._pa = _import_lance()
        self._options = options
        default_rows = LANCE_WRITE_THROUGH_ROWS if options.no_caching else LANCE_FLUSH_ROWS
        self._flush_rows = max(flush_rows if flush_rows is not None else default_rows, 1)
        self._uri = str(options.cache_dir / LANCE_DIR_NAME)
        self._pending: list[tuple[str, int, str]] = []
        try:
            options.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise ItisStoreError(
                f"Failed to prepare cache directory {options.cache_dir}: {error}."
            ) from error
        self._exists = (options.cache_dir / LANCE_DIR_NAME).exists()
        self._sequence = self._load_last_sequence()
        _LOGGER.info(
            "store_opened",
            implementation="lance",
            cache_dir=str(options.cache_dir),
            last_sequence=self._sequence,
            no_caching=options.no_caching,
        )

    def put(self, key: str, payload: Mapping[str, Any]) -> None:
        """Queue a payload and write it once the buffer is full.

        Raises:
            ItisStoreError: If encoding or the Lance append fails.
        """
        try:
            encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False)
        except (TypeError, ValueError) as error:
            raise ItisStoreError(f"Failed to encode payload for key {key}: {error}.") from error
        self._sequence += 1
        self._pending.append((key, self._sequence, encoded))
        if len(self._pending) >= self._flush_rows:
            self.flush()

    def flush(self) -> None:
        """Append buffered rows to the dataset.

        Raises:
            ItisStoreError: If the Lance write fails.
        """
        if not self._pending:
            return
        pending, self._pending = self._pending, []
        table = self._pa.table(
            {
                "key": [row[0] for row in pending],
                "sequence": [row[1] for row in pending],
                "payload": [row[2] for row in pending],
            }
        )
        mode = "append" if self._exists else "create"
        try:
            self._lance.write_dataset(
                table,
                self._uri,
                mode=mode,
                max_bytes_per_file=self._options.log_file_size_mb * _BYTES_PER_MB,
            )
        except Exception as error:
            raise ItisStoreError(
                f"Failed to write {len(pending)} records to Lance dataset at {self._uri}: "
                f"{error}. Validate lance/pyarrow compatibility and retry the load."
            ) from error
        self._exists = True

    def get(self, key: str) -> dict[str, Any] | None:
        """Return the payload with the highest sequence for ``key``."""
        self.flush()
        if not self._exists:
            return None
        escaped_key = key.replace("'", "''")
        table = self._read_table(["sequence", "payload"], f"key = '{escaped_key}'")
        if table.num_rows == 0:
            return None
        sequences = table.column("sequence").to_pylist()
        latest_index = max(range(len(sequences)), key=sequences.__getitem__)
        value = json.loads(table.column("payload")[latest_index].as_py())
        return value if isinstance(value, dict) else None

    def keys(self) -> Iterator[str]:
        self.flush()
        if not self._exists:
            return iter(())
        table = self._read_table(["key"], None)
        return iter(dict.fromkeys(table.column("key").to_pylist()))

    def close(self) -> None:
        """Write buffered rows and compact the dataset.

        Raises:
            ItisStoreError: If the final append or compaction fails.
        """
        self.flush()
        self.compact()
        _LOGGER.info("store_closed", implementation="lance", last_sequence=self._sequence)

    def compact(self) -> int:
        """Merge appended fragments and remove superseded dataset versions.

        Returns:
            Fragment count after compaction.

        Raises:
            ItisStoreError: If Lance fails to compact or clean up the dataset.
        """
        if not self._exists:
            return 0
        try:
            dataset = self._lance.dataset(self._uri)
            fragments_before = len(dataset.get_fragments())
            if fragments_before > 1:
                dataset.optimize.compact_files()
                dataset = self._lance.dataset(self._uri)
                dataset.cleanup_old_versions(older_than=timedelta(seconds=0))
            fragments_after = len(dataset.get_fragments())
        except Exception as error:
            raise ItisStoreError(
                f"Failed to compact Lance dataset at {self._uri}: {error}. "
                "Validate lance/pyarrow compatibility and retry the load."
            ) from error
        if fragments_after != fragments_before:
            _LOGGER.info(
                "store_compacted",
                implementation="lance",
                fragments_before=fragments_before,
                fragments_after=fragments_after,
            )
        return fragments_after

    def __enter__(self) -> "LanceRecordStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _load_last_sequence(self) -> int:
        if not self._exists:
            return 0
        table = self._read_table(["sequence"], None)
        sequences = table.column("sequence").to_pylist()
        return max(sequences) if sequences else 0

    def _read_table(self, columns: list[str], row_filter: str | None) -> Any:
        try:
            dataset = self._lance.dataset(self._uri)
            return dataset.to_table(columns=columns, filter=row_filter)
        except Exception as error:
            raise ItisStoreError(
                f"Failed to read Lance dataset at {self._uri}: {error}. "
                "Reload the cache to rebuild the dataset."
            ) from error


def _import_lance() -> tuple[Any, Any]:
    try:
        import lance
        import pyarrow as pa
    except ImportError as error:
        raise ItisDependencyError(
            "The lance store requires pylance and pyarrow, but they are not installed. "
            "Install them or select the 'caching' store implementation."
        ) from error
    return lance, pa
