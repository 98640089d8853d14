"""Record assembly for one taxonomic unit.

This module resolves the related rows of a unit into one denormalized
``FullRecord`` plus its ancestor chain and immediate children. Each
auxiliary lookup runs as a separate step whose failure degrades to an
empty value and is reported through ``LookupOutcome``.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from core.logging_config import get_logger
from core.types import (
    AssembledRecord,
    CompletenessRating,
    CredibilityRating,
    CurrencyRating,
    FullRecord,
    Kingdom,
    LookupOutcome,
    ReferenceLists,
    ScientificName,
    TaxonAuthor,
    TaxonomicUnitRow,
    TaxRank,
    UnacceptReason,
    Usage,
)
from ingest.hierarchy import HierarchyResolver
from ingest.lookup_caches import LookupCaches
from ingest.reference_links import resolve_reference_lists
from ingest.source_queries import (
    fetch_accepted_names,
    fetch_comments,
    fetch_common_names,
    fetch_geographic_divisions,
    fetch_jurisdictional_origins,
    fetch_scientific_name_author,
    fetch_synonyms,
    fetch_taxon_author,
)

_LOGGER = get_logger(__name__)

T = TypeVar("T")


class RecordAssembler:
    """Assemble denormalized records from source rows.

    The assembler never raises for a lookup failure; the affected field is
    left empty and the failure is recorded on the record.
    """

    def __init__(self, connection: Any, caches: LookupCaches) -> None:
        """Create an assembler.

        Args:
            connection: Open source connection shared for the run.
            caches: Rank and kingdom name caches owned by the run.
        """
        self._connection = connection
        self._caches = caches
        self._hierarchy = HierarchyResolver(connection, caches)

    def assemble(self, row: TaxonomicUnitRow) -> AssembledRecord:
        """Assemble a record, its ancestors, and its children.

        Args:
            row: Source taxonomic unit row.

        Returns:
            Assembled record with embedded hierarchy.
        """
        tsn = row.tsn
        connection = self._connection
        outcomes: dict[str, LookupOutcome[Any]] = {}

        def step(name: str, query: Callable[[], T], default: T) -> T:
            outcome = _run_step(tsn, name, query, default)
            outcomes[name] = outcome
            return outcome.value

        kingdom_name = step("kingdom_name", lambda: self._caches.kingdom_name(row.kingdom_id), None)
        rank_name = step("rank_name", lambda: self._caches.rank_name(row.rank_id), None)
        author = step(
            "scientific_name_author",
            lambda: fetch_scientific_name_author(connection, tsn),
            None,
        )
        origins = step(
            "jurisdictional_origins",
            lambda: tuple(fetch_jurisdictional_origins(connection, tsn)),
            (),
        )
        ancestors = step(
            "ancestors",
            lambda: tuple(self._hierarchy.resolve_ancestors(row.parent_tsn, start_tsn=tsn)),
            (),
        )
        children = step(
            "children", lambda: tuple(self._hierarchy.resolve_children(tsn)), ()
        )
        comments = step("comments", lambda: tuple(fetch_comments(connection, tsn)), ())
        divisions = step(
            "geographic_divisions",
            lambda: tuple(fetch_geographic_divisions(connection, tsn)),
            (),
        )
        common_names = step(
            "common_names", lambda: tuple(fetch_common_names(connection, tsn)), ()
        )
        synonyms = step("synonyms", lambda: tuple(fetch_synonyms(connection, tsn)), ())
        accepted_names = step(
            "accepted_names", lambda: tuple(fetch_accepted_names(connection, tsn)), ()
        )
        references = step(
            "reference_links",
            lambda: resolve_reference_lists(connection, tsn),
            ReferenceLists(),
        )
        authorship = step(
            "taxon_author",
            lambda: fetch_taxon_author(connection, row.taxon_author_id),
            None,
        )

        record = FullRecord(
            tsn=tsn,
            parent_tsn=row.parent_tsn,
            kingdom=Kingdom(kingdom_id=row.kingdom_id, kingdom_name=kingdom_name),
            usage=Usage(taxon_usage_rating=row.name_usage),
            unaccept_reason=UnacceptReason(unaccept_reason=row.unaccept_reason),
            currency_rating=CurrencyRating(taxon_currency=row.currency_rating, rank_id=row.rank_id),
            completeness_rating=CompletenessRating(
                completeness=row.completeness_rating, rank_id=row.rank_id
            ),
            credibility_rating=CredibilityRating(cred_rating=row.credibility_rating),
            tax_rank=TaxRank(
                kingdom_id=row.kingdom_id,
                kingdom_name=kingdom_name,
                rank_id=row.rank_id,
                rank_name=rank_name,
            ),
            scientific_name=_scientific_name(row, author),
            taxon_author=TaxonAuthor(authorship=authorship),
            common_names=common_names,
            synonyms=synonyms,
            accepted_names=accepted_names,
            comments=comments,
            geographic_divisions=divisions,
            jurisdictional_origins=origins,
            publications=references.publications,
            experts=references.experts,
            other_sources=references.other_sources,
            lookup_outcomes=outcomes,
        )
        return AssembledRecord(record=record, ancestors=ancestors, children=children)


def _scientific_name(row: TaxonomicUnitRow, author: str | None) -> ScientificName:
    return ScientificName(
        combined_name=row.complete_name,
        unit_ind1=row.unit_ind1,
        unit_name1=row.unit_name1,
        unit_ind2=row.unit_ind2,
        unit_name2=row.unit_name2,
        unit_ind3=row.unit_ind3,
        unit_name3=row.unit_name3,
        unit_ind4=row.unit_ind4,
        unit_name4=row.unit_name4,
        author=author,
    )


def _run_step(tsn: str, name: str, query: Callable[[], T], default: T) -> LookupOutcome[T]:
    """Run one lookup, degrading any failure to the default value."""
    try:
        value = query()
    except Exception as error:
        _LOGGER.error(
            "lookup_failed",
            tsn=tsn,
            step=name,
            error_type=type(error).__name__,
            error=str(error),
        )
        return LookupOutcome(status="failed", value=default, error=str(error))
    if _is_empty(value):
        return LookupOutcome(status="empty", value=default if value is None else value)
    return LookupOutcome(status="resolved", value=value)


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, ReferenceLists):
        return not (value.publications or value.other_sources or value.experts)
    if isinstance(value, tuple):
        return len(value) == 0
    return False
