"""Fixed auxiliary queries over the ITIS relational schema.

Each function runs one parameterized query and maps the result into typed
rows. Query errors propagate as ``sqlite3.Error`` so callers can decide how
to degrade.
"""

from __future__ import annotations

from typing import Any, Iterable

from core.types import (
    AcceptedName,
    Comment,
    CommonName,
    Expert,
    GeoDivision,
    JurisdictionalOrigin,
    OtherSource,
    Publication,
    ReferenceLink,
    Synonym,
    TaxonomicUnitRow,
)
from ingest.row_fetcher import unit_row_from_sql
from ingest.source_connection import column_text


def fetch_unit(connection: Any, tsn: str) -> TaxonomicUnitRow | None:
    """Fetch one unit by TSN, or ``None`` when absent."""
    row = connection.execute("select * from taxonomic_units where tsn = ?", (tsn,)).fetchone()
    return unit_row_from_sql(row) if row is not None else None


def fetch_child_units(connection: Any, tsn: str) -> list[TaxonomicUnitRow]:
    """Fetch units whose parent is ``tsn``."""
    rows = connection.execute(
        "select * from taxonomic_units where parent_tsn = ?", (tsn,)
    ).fetchall()
    return [unit_row_from_sql(row) for row in rows]


def fetch_common_names(connection: Any, tsn: str) -> list[CommonName]:
    rows = connection.execute(
        "select vernacular_name, language from vernaculars where tsn = ?", (tsn,)
    ).fetchall()
    return [
        CommonName(
            common_name=column_text(row, "vernacular_name"),
            language=column_text(row, "language"),
        )
        for row in rows
    ]


def group_common_names(names: Iterable[CommonName]) -> dict[str, tuple[str, ...]]:
    """Group vernacular names by language.

    Languages and names keep the order in which they were first seen.

    Args:
        names: Common names in query order.

    Returns:
        Language to names mapping.
    """
    grouped: dict[str, list[str]] = {}
    for name in names:
        if name.common_name is None:
            continue
        grouped.setdefault(name.language or "unspecified", []).append(name.common_name)
    return {language: tuple(values) for language, values in grouped.items()}


def fetch_scientific_name_author(connection: Any, tsn: str) -> str | None:
    row = connection.execute(
        "select strippedauthor.shortauthor from strippedauthor, taxonomic_units"
        " where taxonomic_units.tsn = ?"
        " and taxonomic_units.taxon_author_id = strippedauthor.taxon_author_id",
        (tsn,),
    ).fetchone()
    return column_text(row, "shortauthor") if row is not None else None


def fetch_taxon_author(connection: Any, taxon_author_id: str | None) -> str | None:
    """Fetch the author display string for an author id."""
    if taxon_author_id is None or not taxon_author_id.strip():
        return None
    authorship = None
    rows = connection.execute(
        "select taxon_author from taxon_authors_lkp where taxon_author_id = ?",
        (taxon_author_id,),
    ).fetchall()
    for row in rows:
        authorship = column_text(row, "taxon_author")
    return authorship


def fetch_jurisdictional_origins(connection: Any, tsn: str) -> list[JurisdictionalOrigin]:
    rows = connection.execute(
        "select jurisdiction_value, origin from jurisdiction where tsn = ?", (tsn,)
    ).fetchall()
    return [
        JurisdictionalOrigin(
            jurisdiction_value=column_text(row, "jurisdiction_value"),
            origin=column_text(row, "origin"),
        )
        for row in rows
    ]


def fetch_comments(connection: Any, tsn: str) -> list[Comment]:
    rows = connection.execute(
        "select comments.comment_id, comments.commentator, comments.comment_detail"
        " from tu_comments_links, comments"
        " where tu_comments_links.tsn = ?"
        " and tu_comments_links.comment_id = comments.comment_id",
        (tsn,),
    ).fetchall()
    return [
        Comment(
            comment_id=column_text(row, "comment_id"),
            commentator=column_text(row, "commentator"),
            comment_detail=column_text(row, "comment_detail"),
        )
        for row in rows
    ]


def fetch_geographic_divisions(connection: Any, tsn: str) -> list[GeoDivision]:
    rows = connection.execute(
        "select geographic_value from geographic_div where tsn = ?", (tsn,)
    ).fetchall()
    return [GeoDivision(geographic_value=column_text(row, "geographic_value")) for row in rows]


def fetch_synonyms(connection: Any, tsn: str) -> list[Synonym]:
    """Fetch synonyms whose accepted unit is ``tsn``."""
    rows = connection.execute(
        "select taxonomic_units.tsn, taxonomic_units.complete_name, strippedauthor.shortauthor"
        " from synonym_links"
        " join taxonomic_units on taxonomic_units.tsn = synonym_links.tsn"
        " left join strippedauthor"
        " on strippedauthor.taxon_author_id = taxonomic_units.taxon_author_id"
        " where synonym_links.tsn_accepted = ?",
        (tsn,),
    ).fetchall()
    return [
        Synonym(
            tsn=str(row["tsn"]),
            sci_name=column_text(row, "complete_name"),
            author=column_text(row, "shortauthor"),
        )
        for row in rows
    ]


def fetch_accepted_names(connection: Any, tsn: str) -> list[AcceptedName]:
    """Fetch accepted units for ``tsn`` when it is a synonym."""
    rows = connection.execute(
        "select taxonomic_units.tsn, taxonomic_units.complete_name, strippedauthor.shortauthor"
        " from synonym_links"
        " join taxonomic_units on taxonomic_units.tsn = synonym_links.tsn_accepted"
        " left join strippedauthor"
        " on strippedauthor.taxon_author_id = taxonomic_units.taxon_author_id"
        " where synonym_links.tsn = ?",
        (tsn,),
    ).fetchall()
    return [
        AcceptedName(
            accepted_tsn=str(row["tsn"]),
            accepted_name=column_text(row, "complete_name"),
            author=column_text(row, "shortauthor"),
        )
        for row in rows
    ]


def fetch_reference_links(connection: Any, tsn: str) -> list[ReferenceLink]:
    rows = connection.execute(
        "select doc_id_prefix, documentation_id from reference_links where tsn = ?", (tsn,)
    ).fetchall()
    return [
        ReferenceLink(
            doc_id_prefix=column_text(row, "doc_id_prefix"),
            documentation_id=column_text(row, "documentation_id"),
        )
        for row in rows
    ]


def fetch_publications(connection: Any, publication_id: str) -> list[Publication]:
    rows = connection.execute(
        "select * from publications where publication_id = ?", (publication_id,)
    ).fetchall()
    return [
        Publication(
            reference_author=column_text(row, "reference_author"),
            title=column_text(row, "title"),
            pub_name=column_text(row, "publication_name"),
            listed_pub_date=column_text(row, "listed_pub_date"),
            actual_pub_date=column_text(row, "actual_pub_date"),
            publisher=column_text(row, "publisher"),
            pub_place=column_text(row, "pub_place"),
            isbn=column_text(row, "isbn"),
            issn=column_text(row, "issn"),
            pages=column_text(row, "pages"),
            pub_comment=column_text(row, "pub_comment"),
        )
        for row in rows
    ]


def fetch_other_sources(connection: Any, source_id: str) -> list[OtherSource]:
    rows = connection.execute(
        "select * from other_sources where source_id = ?", (source_id,)
    ).fetchall()
    return [
        OtherSource(
            source=column_text(row, "source"),
            source_type=column_text(row, "source_type"),
            version=column_text(row, "version"),
            source_comment=column_text(row, "source_comment"),
        )
        for row in rows
    ]


def fetch_experts(connection: Any, expert_id: str) -> list[Expert]:
    rows = connection.execute(
        "select * from experts where expert_id = ?", (expert_id,)
    ).fetchall()
    return [
        Expert(
            expert=column_text(row, "expert"),
            comment=column_text(row, "exp_comment"),
            update_date=column_text(row, "update_date"),
        )
        for row in rows
    ]
