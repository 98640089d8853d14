"""Post-load verification of the record store against the source."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from core.errors import ItisStoreError, ItisVerificationError
from core.load_types import StoreOptions, VerificationReport
from core.logging_config import get_logger
from ingest.source_connection import open_source_connection, sqlite_driver
from store.record_store import RecordStore, open_record_store

_LOGGER = get_logger(__name__)

_REPORT_KEY_LIMIT = 20


def verify_cache(
    connection: Any,
    store: RecordStore,
    check_payloads: bool = True,
) -> VerificationReport:
    """Compare source TSNs with stored keys.

    Args:
        connection: Open source connection.
        store: Open record store.
        check_payloads: Also read every payload and compare its TSN to its key.

    Returns:
        Verification report.

    Raises:
        ItisVerificationError: If the source or store cannot be read.
    """
    source_keys = _source_tsns(connection)
    try:
        stored_keys = set(store.keys())
        mismatched = _mismatched_keys(store, stored_keys) if check_payloads else []
    except ItisStoreError as error:
        raise ItisVerificationError(f"Failed to read record store: {error}") from error
    report = VerificationReport(
        source_count=len(source_keys),
        stored_count=len(stored_keys),
        missing_keys=tuple(sorted(source_keys - stored_keys)),
        unexpected_keys=tuple(sorted(stored_keys - source_keys)),
        mismatched_keys=tuple(sorted(mismatched)),
    )
    _LOGGER.info(
        "verification_completed",
        passed=report.passed,
        source_count=report.source_count,
        stored_count=report.stored_count,
        missing=len(report.missing_keys),
        unexpected=len(report.unexpected_keys),
        mismatched=len(report.mismatched_keys),
    )
    return report


def verify_cache_at(source_path: Path, store_options: StoreOptions) -> VerificationReport:
    """Open the source and store, then verify them."""
    connection = open_source_connection(source_path)
    try:
        with open_record_store(store_options) as store:
            return verify_cache(connection, store)
    finally:
        connection.close()


def render_verification_report(report: VerificationReport) -> str:
    """Render a report into stable multi-line text for CLI output."""
    lines = [
        f"verification={'passed' if report.passed else 'failed'}",
        f"source_count={report.source_count}",
        f"stored_count={report.stored_count}",
    ]
    for label, keys in (
        ("missing", report.missing_keys),
        ("unexpected", report.unexpected_keys),
        ("mismatched", report.mismatched_keys),
    ):
        shown = ",".join(keys[:_REPORT_KEY_LIMIT])
        suffix = ",..." if len(keys) > _REPORT_KEY_LIMIT else ""
        lines.append(f"{label}={len(keys)} [{shown}{suffix}]")
    return "\n".join(lines)


def _source_tsns(connection: Any) -> set[str]:
    sqlite3 = sqlite_driver()
    try:
        return {str(row[0]) for row in connection.execute("select tsn from taxonomic_units")}
    except sqlite3.Error as error:
        raise ItisVerificationError(
            f"Failed to read source TSNs: {error}. Check the source database."
        ) from error


def _mismatched_keys(store: RecordStore, keys: set[str]) -> list[str]:
    mismatched: list[str] = []
    for key in keys:
        payload = store.get(key)
        if payload is None or str(payload.get("tsn")) != key:
            mismatched.append(key)
    return mismatched
