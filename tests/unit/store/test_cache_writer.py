"""Unit tests for the cache writer."""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from core.errors import ItisStoreError
from store.cache_writer import CacheWriter
from tests.itis_fixtures import minimal_assembled_record


class _MemoryStore:
    def __init__(self, failing_keys: set[str] | None = None) -> None:
        self.payloads: dict[str, dict[str, Any]] = {}
        self._failing_keys = failing_keys or set()

    def put(self, key: str, payload: Mapping[str, Any]) -> None:
        if key in self._failing_keys:
            raise ItisStoreError(f"disk full writing {key}")
        self.payloads[key] = dict(payload)

    def get(self, key: str) -> dict[str, Any] | None:
        return self.payloads.get(key)

    def keys(self) -> Iterator[str]:
        return iter(self.payloads)

    def close(self) -> None:
        return None

    def __enter__(self) -> "_MemoryStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def test_write_stores_payload_under_tsn() -> None:
    """Records should be keyed by their TSN."""
    store = _MemoryStore()
    writer = CacheWriter(store)

    written = writer.write(minimal_assembled_record("28728"))

    assert written is True
    assert store.payloads["28728"]["tsn"] == "28728"


def test_write_drops_record_on_store_failure() -> None:
    """A failing put should be counted and the load should continue."""
    store = _MemoryStore(failing_keys={"2"})
    writer = CacheWriter(store)

    results = [writer.write(minimal_assembled_record(tsn)) for tsn in ("1", "2", "3")]

    assert results == [True, False, True]
    assert (writer.written, writer.failed) == (2, 1)
    assert sorted(store.payloads) == ["1", "3"]
