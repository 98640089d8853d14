"""Shared typed models.

This module defines immutable data models used by the fetcher,
assembler, and store layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Generic, Literal, Mapping, TypeVar

T = TypeVar("T")
LookupStatus = Literal["resolved", "empty", "failed"]


@dataclass(frozen=True)
class TaxonomicUnitRow:
    """One row of the source ``taxonomic_units`` table.

    Attributes:
        tsn: Taxonomic serial number.
        parent_tsn: Parent TSN, ``None`` for root units.
        kingdom_id: Kingdom lookup id.
        rank_id: Rank lookup id.
        name_usage: Usage code, e.g. valid or invalid.
        unaccept_reason: Reason the name is not accepted.
        currency_rating: Currency rating code.
        completeness_rating: Completeness rating code.
        credibility_rating: Credibility rating code.
        complete_name: Combined scientific name.
        unit_ind1: First unit indicator.
        unit_name1: First unit name.
        unit_ind2: Second unit indicator.
        unit_name2: Second unit name.
        unit_ind3: Third unit indicator.
        unit_name3: Third unit name.
        unit_ind4: Fourth unit indicator.
        unit_name4: Fourth unit name.
        taxon_author_id: Author lookup id.
    """

    tsn: str
    parent_tsn: str | None = None
    kingdom_id: str | None = None
    rank_id: str | None = None
    name_usage: str | None = None
    unaccept_reason: str | None = None
    currency_rating: str | None = None
    completeness_rating: str | None = None
    credibility_rating: str | None = None
    complete_name: str | None = None
    unit_ind1: str | None = None
    unit_name1: str | None = None
    unit_ind2: str | None = None
    unit_name2: str | None = None
    unit_ind3: str | None = None
    unit_name3: str | None = None
    unit_ind4: str | None = None
    unit_name4: str | None = None
    taxon_author_id: str | None = None


@dataclass(frozen=True)
class RankEntry:
    """Lightweight hierarchy entry embedded in a record.

    Attributes:
        tsn: Taxonomic serial number of the entry.
        rank_id: Rank lookup id.
        rank_name: Resolved rank name.
        display_name: Complete scientific name.
        kingdom_id: Kingdom lookup id.
        kingdom_name: Resolved kingdom name.
        common_names: Language to vernacular names, insertion ordered.
    """

    tsn: str
    rank_id: str | None
    rank_name: str | None
    display_name: str | None
    kingdom_id: str | None
    kingdom_name: str | None
    common_names: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class Kingdom:
    kingdom_id: str | None
    kingdom_name: str | None


@dataclass(frozen=True)
class Usage:
    taxon_usage_rating: str | None


@dataclass(frozen=True)
class UnacceptReason:
    unaccept_reason: str | None


@dataclass(frozen=True)
class CurrencyRating:
    taxon_currency: str | None
    rank_id: str | None


@dataclass(frozen=True)
class CompletenessRating:
    completeness: str | None
    rank_id: str | None


@dataclass(frozen=True)
class CredibilityRating:
    cred_rating: str | None


@dataclass(frozen=True)
class TaxRank:
    """Rank of the record's own unit."""

    kingdom_id: str | None
    kingdom_name: str | None
    rank_id: str | None
    rank_name: str | None


@dataclass(frozen=True)
class ScientificName:
    """Four-part scientific name with its stripped author."""

    combined_name: str | None
    unit_ind1: str | None = None
    unit_name1: str | None = None
    unit_ind2: str | None = None
    unit_name2: str | None = None
    unit_ind3: str | None = None
    unit_name3: str | None = None
    unit_ind4: str | None = None
    unit_name4: str | None = None
    author: str | None = None


@dataclass(frozen=True)
class TaxonAuthor:
    authorship: str | None


@dataclass(frozen=True)
class CommonName:
    common_name: str | None
    language: str | None


@dataclass(frozen=True)
class Synonym:
    tsn: str
    sci_name: str | None
    author: str | None


@dataclass(frozen=True)
class AcceptedName:
    accepted_tsn: str
    accepted_name: str | None
    author: str | None


@dataclass(frozen=True)
class Comment:
    comment_id: str | None
    commentator: str | None
    comment_detail: str | None


@dataclass(frozen=True)
class GeoDivision:
    geographic_value: str | None


@dataclass(frozen=True)
class JurisdictionalOrigin:
    jurisdiction_value: str | None
    origin: str | None


@dataclass(frozen=True)
class Publication:
    """Bibliographic reference row from ``publications``."""

    reference_author: str | None
    title: str | None
    pub_name: str | None
    listed_pub_date: str | None
    actual_pub_date: str | None
    publisher: str | None
    pub_place: str | None
    isbn: str | None
    issn: str | None
    pages: str | None
    pub_comment: str | None


@dataclass(frozen=True)
class Expert:
    expert: str | None
    comment: str | None
    update_date: str | None


@dataclass(frozen=True)
class OtherSource:
    source: str | None
    source_type: str | None
    version: str | None
    source_comment: str | None


@dataclass(frozen=True)
class ReferenceLink:
    """Join row linking a TSN to a typed document.

    Attributes:
        doc_id_prefix: Document type code (``PUB``, ``SRC`` or ``EXP``).
        documentation_id: Document id in the table selected by the prefix.
    """

    doc_id_prefix: str | None
    documentation_id: str | None


@dataclass(frozen=True)
class ReferenceLists:
    """Reference documents resolved for one TSN."""

    publications: tuple[Publication, ...] = ()
    other_sources: tuple[OtherSource, ...] = ()
    experts: tuple[Expert, ...] = ()


@dataclass(frozen=True)
class LookupOutcome(Generic[T]):
    """Result of one auxiliary lookup step.

    Attributes:
        status: ``resolved`` with data, ``empty`` when the source has no
            match, ``failed`` when the query raised.
        value: Resolved value, or the step default when not resolved.
        error: Error text for failed steps.
    """

    status: LookupStatus
    value: T
    error: str | None = None

    @property
    def failed(self) -> bool:
        """Return whether the step failed to resolve."""
        return self.status == "failed"


@dataclass(frozen=True)
class FullRecord:
    """Denormalized record persisted under its TSN.

    Attributes:
        tsn: Taxonomic serial number, equal to the cache key.
        parent_tsn: Parent TSN, ``None`` for roots.
        kingdom: Kingdom reference.
        usage: Name usage rating.
        unaccept_reason: Unaccept reason.
        currency_rating: Currency rating.
        completeness_rating: Completeness rating.
        credibility_rating: Credibility rating.
        tax_rank: Rank of this unit.
        scientific_name: Scientific name and stripped author.
        taxon_author: Author display string.
        common_names: Vernacular names.
        synonyms: Synonyms pointing at this accepted unit.
        accepted_names: Accepted units for this synonym.
        comments: Unit comments.
        geographic_divisions: Geographic divisions.
        jurisdictional_origins: Jurisdictional origins.
        publications: Publications from reference links.
        experts: Experts from reference links.
        other_sources: Other sources from reference links.
        lookup_outcomes: Step name to outcome status for each lookup.
    """

    tsn: str
    parent_tsn: str | None
    kingdom: Kingdom
    usage: Usage
    unaccept_reason: UnacceptReason
    currency_rating: CurrencyRating
    completeness_rating: CompletenessRating
    credibility_rating: CredibilityRating
    tax_rank: TaxRank
    scientific_name: ScientificName
    taxon_author: TaxonAuthor
    common_names: tuple[CommonName, ...] = ()
    synonyms: tuple[Synonym, ...] = ()
    accepted_names: tuple[AcceptedName, ...] = ()
    comments: tuple[Comment, ...] = ()
    geographic_divisions: tuple[GeoDivision, ...] = ()
    jurisdictional_origins: tuple[JurisdictionalOrigin, ...] = ()
    publications: tuple[Publication, ...] = ()
    experts: tuple[Expert, ...] = ()
    other_sources: tuple[OtherSource, ...] = ()
    lookup_outcomes: Mapping[str, LookupOutcome[object]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # callers keep no handle on the stored mapping
        frozen_outcomes = MappingProxyType(dict(self.lookup_outcomes))
        object.__setattr__(self, "lookup_outcomes", frozen_outcomes)

    @property
    def failed_lookups(self) -> tuple[str, ...]:
        """Return step names whose lookup failed."""
        return tuple(name for name, outcome in self.lookup_outcomes.items() if outcome.failed)


@dataclass(frozen=True)
class AssembledRecord:
    """Record plus its embedded hierarchy.

    Attributes:
        record: Denormalized record.
        ancestors: Ancestor entries ordered root first, ending at the parent.
        children: Immediate children, one level down.
    """

    record: FullRecord
    ancestors: tuple[RankEntry, ...] = ()
    children: tuple[RankEntry, ...] = ()
