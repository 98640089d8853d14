"""Append-only segmented log store for record payloads.

Records are appended as JSON lines to numbered segment files under the
cache directory. A segment is closed once it reaches the configured log
file size and writing continues in the next one. The key index is held in
memory and rebuilt by scanning the segments on open; the last write for a
key wins. Closing the store compacts the segments once superseded lines
take up at least as much space as live ones, so repeated full reloads do
not grow the cache.
"""

from __future__ import annotations

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Mapping

from core.constants import SEGMENT_FILE_SUFFIX, SEGMENTS_DIR_NAME, STORE_METADATA_FILE_NAME
from core.errors import ItisStoreError
from core.load_types import StoreOptions
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

_BYTES_PER_MB = 1024 * 1024
_COMPACTING_SUFFIX = ".compacting"
_RETIRED_SUFFIX = ".retired"


class SegmentLogStore:
    """Key-value store backed by rolling append-only log segments."""

    def __init__(self, options: StoreOptions) -> None:
        """Open or create a store under ``options.cache_dir``.

        Args:
            options: Store configuration.

        Raises:
            ItisStoreError: If the cache directory cannot be prepared or read.
        """
        self._options = options
        self._segments_dir = options.cache_dir / SEGMENTS_DIR_NAME
        self._max_segment_bytes = options.log_file_size_mb * _BYTES_PER_MB
        self._index: dict[str, tuple[int, int, int]] = {}
        self._segment_number = 0
        self._segment_size = 0
        self._total_bytes = 0
        self._live_bytes = 0
        self._handle: BinaryIO | None = None
        try:
            _recover_interrupted_compaction(self._segments_dir)
            self._segments_dir.mkdir(parents=True, exist_ok=True)
            _write_store_metadata(options)
            self._rebuild_index()
            self._open_current_segment()
        except OSError as error:
            raise ItisStoreError(
                f"Failed to prepare cache directory {options.cache_dir}: {error}. "
                "Check write permissions and available disk space."
            ) from error
        _LOGGER.info(
            "store_opened",
            implementation="caching",
            cache_dir=str(options.cache_dir),
            existing_keys=len(self._index),
            segment=self._segment_number,
            no_caching=options.no_caching,
        )

    def put(self, key: str, payload: Mapping[str, Any]) -> None:
        """Append a payload for ``key``.

        A failed write is cut back off the segment so later offsets stay
        valid.

        Raises:
            ItisStoreError: If the payload cannot be encoded or written.
        """
        try:
            line = json.dumps({"key": key, "value": payload}, sort_keys=True, ensure_ascii=False)
        except (TypeError, ValueError) as error:
            raise ItisStoreError(f"Failed to encode payload for key {key}: {error}.") from error
        data = line.encode("utf-8") + b"\n"
        if self._segment_size > 0 and self._segment_size + len(data) > self._max_segment_bytes:
            self._roll_segment()
        handle = self._require_handle()
        offset = self._segment_size
        try:
            handle.write(data)
            if self._options.no_caching:
                handle.flush()
        except OSError as error:
            self._discard_partial_write(offset)
            raise ItisStoreError(
                f"Failed to write key {key} to segment {self._segment_number}: {error}. "
                "Check available disk space."
            ) from error
        self._segment_size += len(data)
        self._record_entry(key, (self._segment_number, offset, len(data)))

    def get(self, key: str) -> dict[str, Any] | None:
        """Return the latest payload stored for ``key``."""
        location = self._index.get(key)
        if location is None:
            return None
        segment_number = location[0]
        if segment_number == self._segment_number and self._handle is not None:
            self._handle.flush()
        segment_path = self._segment_path(segment_number)
        try:
            entry = json.loads(_read_line(segment_path, location))
        except (OSError, json.JSONDecodeError) as error:
            raise ItisStoreError(
                f"Failed to read key {key} from {segment_path}: {error}. "
                "Reload the cache to rebuild damaged segments."
            ) from error
        value = entry.get("value")
        return value if isinstance(value, dict) else None

    def keys(self) -> Iterator[str]:
        return iter(list(self._index))

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    @property
    def dead_bytes(self) -> int:
        """Bytes held by superseded or unreadable lines."""
        return self._total_bytes - self._live_bytes

    def segment_paths(self) -> list[Path]:
        """Return existing segment files in write order."""
        return sorted(self._segments_dir.glob(f"*{SEGMENT_FILE_SUFFIX}"))

    def close(self) -> None:
        """Flush and close the current segment, compacting when worthwhile.

        Raises:
            ItisStoreError: If flushing or compaction fails.
        """
        if self._handle is None:
            return
        try:
            self._handle.flush()
            self._handle.close()
        except OSError as error:
            raise ItisStoreError(
                f"Failed to close segment {self._segment_number}: {error}."
            ) from error
        finally:
            self._handle = None
        if self.dead_bytes > 0 and self.dead_bytes >= self._live_bytes:
            self.compact()
        _LOGGER.info("store_closed", implementation="caching", keys=len(self._index))

    def compact(self) -> None:
        """Rewrite live entries into fresh segments and drop the old ones.

        New segments are built beside the live directory and swapped in
        once complete; an interrupted compaction is rolled back on open.

        Raises:
            ItisStoreError: If the store is open for writing or a file fails.
        """
        if self._handle is not None:
            raise ItisStoreError("Close the record store before compacting it.")
        compacting_dir = self._segments_dir.with_name(SEGMENTS_DIR_NAME + _COMPACTING_SUFFIX)
        retired_dir = self._segments_dir.with_name(SEGMENTS_DIR_NAME + _RETIRED_SUFFIX)
        reclaimed = self.dead_bytes
        try:
            shutil.rmtree(compacting_dir, ignore_errors=True)
            compacting_dir.mkdir(parents=True)
            compacted_index = self._write_compacted_segments(compacting_dir)
            self._segments_dir.rename(retired_dir)
            compacting_dir.rename(self._segments_dir)
            shutil.rmtree(retired_dir)
        except OSError as error:
            raise ItisStoreError(
                f"Failed to compact segments in {self._options.cache_dir}: {error}. "
                "The previous segments are restored on the next open."
            ) from error
        self._index = compacted_index
        self._total_bytes = self._live_bytes
        _LOGGER.info(
            "store_compacted",
            keys=len(compacted_index),
            live_bytes=self._live_bytes,
            reclaimed_bytes=reclaimed,
        )

    def __enter__(self) -> "SegmentLogStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _segment_path(self, segment_number: int, segments_dir: Path | None = None) -> Path:
        directory = segments_dir if segments_dir is not None else self._segments_dir
        return directory / f"{segment_number:08d}{SEGMENT_FILE_SUFFIX}"

    def _record_entry(self, key: str, location: tuple[int, int, int]) -> None:
        previous = self._index.get(key)
        if previous is not None:
            self._live_bytes -= previous[2]
        self._index[key] = location
        self._live_bytes += location[2]
        self._total_bytes += location[2]

    def _rebuild_index(self) -> None:
        for segment_path in self.segment_paths():
            segment_number = int(segment_path.stem)
            self._index_segment(segment_number, segment_path)
            self._segment_number = max(self._segment_number, segment_number)

    def _index_segment(self, segment_number: int, segment_path: Path) -> None:
        offset = 0
        torn_offset: int | None = None
        with segment_path.open("rb") as handle:
            for line_number, line in enumerate(handle, 1):
                if not line.endswith(b"\n"):
                    torn_offset = offset
                    break
                key = _entry_key(line)
                if key is None:
                    _LOGGER.warning(
                        "segment_line_skipped",
                        segment=segment_path.name,
                        line_number=line_number,
                    )
                    self._total_bytes += len(line)
                else:
                    self._record_entry(key, (segment_number, offset, len(line)))
                offset += len(line)
        if torn_offset is not None:
            # an unterminated last line is an interrupted write
            with segment_path.open("r+b") as handle:
                handle.truncate(torn_offset)
            _LOGGER.warning(
                "segment_tail_truncated",
                segment=segment_path.name,
                offset=torn_offset,
            )

    def _open_current_segment(self) -> None:
        if self._segment_number == 0:
            self._segment_number = 1
        segment_path = self._segment_path(self._segment_number)
        size = segment_path.stat().st_size if segment_path.exists() else 0
        if size >= self._max_segment_bytes:
            self._segment_number += 1
            segment_path = self._segment_path(self._segment_number)
            size = 0
        self._handle = segment_path.open("ab")
        self._segment_size = size

    def _roll_segment(self) -> None:
        handle = self._require_handle()
        handle.flush()
        handle.close()
        self._segment_number += 1
        self._handle = self._segment_path(self._segment_number).open("ab")
        self._segment_size = 0
        _LOGGER.info("segment_rolled", segment=self._segment_number)

    def _discard_partial_write(self, offset: int) -> None:
        handle = self._require_handle()
        try:
            handle.truncate(offset)
        except OSError as error:
            # writes resume in a fresh segment; the torn tail is cut on next open
            _LOGGER.error(
                "segment_truncate_failed",
                segment=self._segment_number,
                offset=offset,
                error=str(error),
            )
            self._segment_size = self._max_segment_bytes
            return
        self._segment_size = offset

    def _write_compacted_segments(self, target_dir: Path) -> dict[str, tuple[int, int, int]]:
        compacted: dict[str, tuple[int, int, int]] = {}
        ordered = sorted(self._index.items(), key=lambda item: item[1][:2])
        segment_number = 1
        segment_size = 0
        source_number = 0
        source: BinaryIO | None = None
        output = self._segment_path(segment_number, target_dir).open("wb")
        try:
            for key, (entry_segment, offset, length) in ordered:
                if source is None or entry_segment != source_number:
                    if source is not None:
                        source.close()
                    source = self._segment_path(entry_segment).open("rb")
                    source_number = entry_segment
                source.seek(offset)
                line = source.read(length)
                if segment_size > 0 and segment_size + length > self._max_segment_bytes:
                    output.close()
                    segment_number += 1
                    segment_size = 0
                    output = self._segment_path(segment_number, target_dir).open("wb")
                output.write(line)
                compacted[key] = (segment_number, segment_size, length)
                segment_size += length
        finally:
            output.close()
            if source is not None:
                source.close()
        self._segment_number = segment_number
        return compacted

    def _require_handle(self) -> BinaryIO:
        if self._handle is None:
            raise ItisStoreError("Record store is closed. Open a new store before writing.")
        return self._handle


def _read_line(segment_path: Path, location: tuple[int, int, int]) -> bytes:
    _, offset, length = location
    with segment_path.open("rb") as handle:
        handle.seek(offset)
        return handle.read(length)


def _entry_key(line: bytes) -> str | None:
    if not line.strip():
        return None
    try:
        entry = json.loads(line)
    except json.JSONDecodeError:
        return None
    key = entry.get("key") if isinstance(entry, dict) else None
    return key if isinstance(key, str) else None


def _recover_interrupted_compaction(segments_dir: Path) -> None:
    compacting_dir = segments_dir.with_name(SEGMENTS_DIR_NAME + _COMPACTING_SUFFIX)
    retired_dir = segments_dir.with_name(SEGMENTS_DIR_NAME + _RETIRED_SUFFIX)
    if retired_dir.exists():
        if segments_dir.exists():
            shutil.rmtree(retired_dir)
        else:
            retired_dir.rename(segments_dir)
            _LOGGER.warning("store_compaction_rolled_back", cache_dir=str(segments_dir.parent))
    if compacting_dir.exists():
        shutil.rmtree(compacting_dir)


def _write_store_metadata(options: StoreOptions) -> None:
    metadata = {
        "implementation": "caching",
        "log_file_size_mb": options.log_file_size_mb,
        "no_caching": options.no_caching,
        "opened_at": datetime.now(timezone.utc).isoformat(),
    }
    metadata_path = options.cache_dir / STORE_METADATA_FILE_NAME
    metadata_path.write_text(json.dumps(metadata, indent=2) + "\n", encoding="utf-8")
