"""Write assembled records into the record store keyed by TSN."""

from __future__ import annotations

from core.logging_config import get_logger
from core.types import AssembledRecord
from store.record_payload import build_record_payload
from store.record_store import RecordStore

_LOGGER = get_logger(__name__)


class CacheWriter:
    """Convert and persist assembled records, dropping failed writes."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self.written = 0
        self.failed = 0

    def write(self, assembled: AssembledRecord) -> bool:
        """Persist one record under its TSN.

        Store failures are logged and the record is dropped so the load
        can continue.

        Args:
            assembled: Record with its embedded hierarchy.

        Returns:
            ``True`` when the record was persisted.
        """
        tsn = assembled.record.tsn
        try:
            payload = build_record_payload(assembled)
            self._store.put(tsn, payload)
        except Exception as error:
            self.failed += 1
            _LOGGER.error(
                "record_write_failed",
                tsn=tsn,
                error_type=type(error).__name__,
                error=str(error),
            )
            return False
        self.written += 1
        return True
