"""Persisted payload schema for assembled records.

This module converts an ``AssembledRecord`` into the JSON-safe mapping
stored under its TSN. The hierarchy is stored root first and ends with
the record's own rank entry.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from core.types import AssembledRecord, FullRecord, RankEntry
from ingest.source_queries import group_common_names

PAYLOAD_SCHEMA_VERSION = 1


def build_record_payload(assembled: AssembledRecord) -> dict[str, Any]:
    """Serialize an assembled record into the store schema.

    Args:
        assembled: Record with ancestors and children.

    Returns:
        JSON-safe dictionary payload.
    """
    record = assembled.record
    hierarchy = [rank_entry_payload(entry) for entry in assembled.ancestors]
    hierarchy.append(rank_entry_payload(self_rank_entry(record)))
    return {
        "schema_version": PAYLOAD_SCHEMA_VERSION,
        "tsn": record.tsn,
        "parent_tsn": record.parent_tsn,
        "kingdom": asdict(record.kingdom),
        "usage": asdict(record.usage),
        "unaccept_reason": asdict(record.unaccept_reason),
        "currency_rating": asdict(record.currency_rating),
        "completeness_rating": asdict(record.completeness_rating),
        "credibility_rating": asdict(record.credibility_rating),
        "rank": asdict(record.tax_rank),
        "scientific_name": asdict(record.scientific_name),
        "taxon_author": asdict(record.taxon_author),
        "common_names": _grouped_names(record),
        "synonyms": [asdict(item) for item in record.synonyms],
        "accepted_names": [asdict(item) for item in record.accepted_names],
        "comments": [asdict(item) for item in record.comments],
        "geographic_divisions": [asdict(item) for item in record.geographic_divisions],
        "jurisdictional_origins": [asdict(item) for item in record.jurisdictional_origins],
        "publications": [asdict(item) for item in record.publications],
        "experts": [asdict(item) for item in record.experts],
        "other_sources": [asdict(item) for item in record.other_sources],
        "taxonomic_hierarchy": hierarchy,
        "children": [rank_entry_payload(entry) for entry in assembled.children],
        "lookup_status": _lookup_status(record),
    }


def self_rank_entry(record: FullRecord) -> RankEntry:
    """Build the record's own entry for the end of its hierarchy."""
    return RankEntry(
        tsn=record.tsn,
        rank_id=record.tax_rank.rank_id,
        rank_name=record.tax_rank.rank_name,
        display_name=record.scientific_name.combined_name,
        kingdom_id=record.kingdom.kingdom_id,
        kingdom_name=record.kingdom.kingdom_name,
        common_names=group_common_names(record.common_names),
    )


def rank_entry_payload(entry: RankEntry) -> dict[str, Any]:
    return {
        "tsn": entry.tsn,
        "rank_id": entry.rank_id,
        "rank_name": entry.rank_name,
        "rank_value": entry.display_name,
        "kingdom_id": entry.kingdom_id,
        "kingdom_name": entry.kingdom_name,
        "common_names": {language: list(names) for language, names in entry.common_names.items()},
    }


def _grouped_names(record: FullRecord) -> dict[str, list[str]]:
    grouped = group_common_names(record.common_names)
    return {language: list(names) for language, names in grouped.items()}


def _lookup_status(record: FullRecord) -> dict[str, dict[str, str | None]]:
    return {
        name: {"status": outcome.status, "error": outcome.error}
        for name, outcome in record.lookup_outcomes.items()
    }
