"""Public SDK surface for the ITIS loader.

This module provides a stable import path for programmatic loads.
It re-exports the load entry point and typed option models.
"""

from __future__ import annotations

from core.config import LoaderConfig
from core.load_types import LoadOptions, LoadSummary, StoreOptions, VerificationReport
from core.types import AssembledRecord, FullRecord, LookupOutcome, RankEntry
from core.verification import verify_cache, verify_cache_at
from ingest.pipeline import load_cache
from ingest.record_assembler import RecordAssembler
from store.record_store import RecordStore, open_record_store

__all__ = [
    "AssembledRecord",
    "FullRecord",
    "LoadOptions",
    "LoadSummary",
    "LoaderConfig",
    "LookupOutcome",
    "RankEntry",
    "RecordAssembler",
    "RecordStore",
    "StoreOptions",
    "VerificationReport",
    "load_cache",
    "open_record_store",
    "verify_cache",
    "verify_cache_at",
]
