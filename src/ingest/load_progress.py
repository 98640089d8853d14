"""Console and structured progress reporting for load runs.

Prints a dot every few records to the console stream and emits a
throughput event at a fixed record interval with the seconds spent on
the last interval.
"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from typing import TextIO

from core.constants import DEFAULT_PROGRESS_INTERVAL, PROGRESS_DOT_INTERVAL
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass
class LoadProgressTracker:
    """Track and emit progress across one load run."""

    total_rows: int
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
    dot_interval: int = PROGRESS_DOT_INTERVAL
    stream: TextIO | None = None
    processed: int = 0
    run_started_at: float = field(default_factory=time.monotonic)
    interval_started_at: float = field(default_factory=time.monotonic)

    def log_load_started(self, chunk_size: int) -> None:
        _LOGGER.info("load_started", total_rows=self.total_rows, chunk_size=chunk_size)

    def record_processed(self) -> None:
        """Count one processed record and emit periodic progress."""
        self.processed += 1
        if self.dot_interval > 0 and self.processed % self.dot_interval == 0:
            self._write(".")
        if self.progress_interval > 0 and self.processed % self.progress_interval == 0:
            now = time.monotonic()
            interval_seconds = now - self.interval_started_at
            self.interval_started_at = now
            self._write("\n")
            _LOGGER.info(
                "load_throughput",
                processed=self.processed,
                total_rows=self.total_rows,
                interval_records=self.progress_interval,
                interval_seconds=round(interval_seconds, 3),
                records_per_second=_rate(self.progress_interval, interval_seconds),
            )

    def elapsed_seconds(self) -> float:
        return round(time.monotonic() - self.run_started_at, 3)

    def _write(self, text: str) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(text)
        stream.flush()


def _rate(records: int, seconds: float) -> float:
    if seconds <= 0:
        return 0.0
    return round(records / seconds, 2)
