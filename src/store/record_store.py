"""Record store interface and implementation selector.

A record store is a key-value sink keyed by TSN. The loader only needs
``put``; ``get`` and ``keys`` back post-load verification.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Protocol

from core.config import validate_store_implementation
from core.load_types import StoreOptions


class RecordStore(Protocol):
    """Key-value store of record payloads."""

    def put(self, key: str, payload: Mapping[str, Any]) -> None:
        """Persist a payload, replacing any earlier payload for the key."""

    def get(self, key: str) -> dict[str, Any] | None:
        """Return the latest payload for a key, or ``None``."""

    def keys(self) -> Iterator[str]:
        """Iterate over stored keys."""

    def close(self) -> None:
        """Flush pending writes and release resources."""

    def __enter__(self) -> "RecordStore":
        ...

    def __exit__(self, *exc_info: object) -> None:
        ...


def open_record_store(options: StoreOptions) -> RecordStore:
    """Open the store implementation selected by the options.

    Args:
        options: Store configuration.

    Returns:
        Open record store.

    Raises:
        ItisConfigError: If the implementation selector is unknown.
        ItisDependencyError: If the selected backend's library is missing.
        ItisStoreError: If the store cannot be opened.
    """
    implementation = validate_store_implementation(options.implementation)
    if implementation == "lance":
        from store.lance_store import LanceRecordStore

        return LanceRecordStore(options)
    from store.segment_log_store import SegmentLogStore

    return SegmentLogStore(options)
