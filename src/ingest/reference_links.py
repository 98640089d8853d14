"""Dispatch of reference links to publication, source, and expert tables."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from core.constants import DOC_TYPE_EXPERT, DOC_TYPE_OTHER_SOURCE, DOC_TYPE_PUBLICATION
from core.logging_config import get_logger
from core.types import ReferenceLists
from ingest.source_queries import (
    fetch_experts,
    fetch_other_sources,
    fetch_publications,
    fetch_reference_links,
)

_LOGGER = get_logger(__name__)

_FIELD_BY_PREFIX = {
    DOC_TYPE_PUBLICATION: "publications",
    DOC_TYPE_OTHER_SOURCE: "other_sources",
    DOC_TYPE_EXPERT: "experts",
}


def resolve_reference_lists(connection: Any, tsn: str) -> ReferenceLists:
    """Resolve every reference link of a TSN into typed document lists.

    A later link of the same type replaces the list set by an earlier one.
    Links with an unknown prefix are ignored.

    Args:
        connection: Open source connection.
        tsn: Unit TSN.

    Returns:
        Publications, other sources, and experts for the unit.

    Raises:
        sqlite3.Error: If a query fails.
    """
    lists = ReferenceLists()
    assigned: set[str] = set()
    for link in fetch_reference_links(connection, tsn):
        prefix = (link.doc_id_prefix or "").strip()
        field_name = _FIELD_BY_PREFIX.get(prefix)
        if field_name is None or link.documentation_id is None:
            _LOGGER.debug(
                "reference_link_skipped",
                tsn=tsn,
                doc_id_prefix=link.doc_id_prefix,
                documentation_id=link.documentation_id,
            )
            continue
        documents = tuple(_fetch_documents(connection, prefix, link.documentation_id))
        if field_name in assigned:
            _LOGGER.warning(
                "reference_link_overwritten",
                tsn=tsn,
                field=field_name,
                documentation_id=link.documentation_id,
            )
        assigned.add(field_name)
        lists = replace(lists, **{field_name: documents})
    return lists


def _fetch_documents(connection: Any, prefix: str, documentation_id: str) -> list[Any]:
    if prefix == DOC_TYPE_PUBLICATION:
        return fetch_publications(connection, documentation_id)
    if prefix == DOC_TYPE_OTHER_SOURCE:
        return fetch_other_sources(connection, documentation_id)
    return fetch_experts(connection, documentation_id)
