"""Helpers that build small ITIS SQLite databases for tests."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from core.types import (
    AssembledRecord,
    CommonName,
    CompletenessRating,
    CredibilityRating,
    CurrencyRating,
    FullRecord,
    Kingdom,
    LookupOutcome,
    RankEntry,
    ScientificName,
    TaxonAuthor,
    TaxRank,
    UnacceptReason,
    Usage,
)

ROOT_TSN = "202422"
SUBKINGDOM_TSN = "954898"
GENUS_TSN = "28727"
SPECIES_TSN = "28728"
SYNONYM_TSN = "28729"
SIBLING_TSN = "183833"
SAMPLE_TSNS = (ROOT_TSN, SUBKINGDOM_TSN, GENUS_TSN, SPECIES_TSN, SYNONYM_TSN, SIBLING_TSN)

_SCHEMA = """
CREATE TABLE taxonomic_units (
    tsn INTEGER PRIMARY KEY,
    unit_ind1 TEXT, unit_name1 TEXT, unit_ind2 TEXT, unit_name2 TEXT,
    unit_ind3 TEXT, unit_name3 TEXT, unit_ind4 TEXT, unit_name4 TEXT,
    name_usage TEXT, unaccept_reason TEXT, credibility_rtng TEXT,
    completeness_rtng TEXT, currency_rating TEXT, parent_tsn INTEGER,
    taxon_author_id INTEGER, kingdom_id INTEGER, rank_id INTEGER, complete_name TEXT
);
CREATE TABLE vernaculars (
    tsn INTEGER, vernacular_name TEXT, language TEXT, approved_ind TEXT,
    update_date TEXT, vern_id INTEGER
);
CREATE TABLE jurisdiction (
    tsn INTEGER, jurisdiction_value TEXT, origin TEXT, update_date TEXT
);
CREATE TABLE synonym_links (tsn INTEGER, tsn_accepted INTEGER, update_date TEXT);
CREATE TABLE strippedauthor (taxon_author_id INTEGER, shortauthor TEXT);
CREATE TABLE taxon_unit_types (
    kingdom_id INTEGER, rank_id INTEGER, rank_name TEXT, dir_parent_rank_id INTEGER,
    req_parent_rank_id INTEGER, update_date TEXT
);
CREATE TABLE kingdoms (kingdom_id INTEGER, kingdom_name TEXT, update_date TEXT);
CREATE TABLE reference_links (
    tsn INTEGER, doc_id_prefix TEXT, documentation_id INTEGER, original_desc_ind TEXT,
    init_itis_desc_ind TEXT, change_track_id INTEGER, vernacular_name TEXT, update_date TEXT
);
CREATE TABLE publications (
    pub_id_prefix TEXT, publication_id INTEGER, reference_author TEXT, title TEXT,
    publication_name TEXT, listed_pub_date TEXT, actual_pub_date TEXT, publisher TEXT,
    pub_place TEXT, isbn TEXT, issn TEXT, pages TEXT, pub_comment TEXT, update_date TEXT
);
CREATE TABLE experts (
    expert_id_prefix TEXT, expert_id INTEGER, expert TEXT, exp_comment TEXT, update_date TEXT
);
CREATE TABLE other_sources (
    source_id_prefix TEXT, source_id INTEGER, source_type TEXT, source TEXT, version TEXT,
    acquisition_date TEXT, source_comment TEXT, update_date TEXT
);
CREATE TABLE comments (
    comment_id INTEGER, commentator TEXT, comment_detail TEXT,
    comment_time_stamp TEXT, update_date TEXT
);
CREATE TABLE tu_comments_links (tsn INTEGER, comment_id INTEGER, update_date TEXT);
CREATE TABLE geographic_div (tsn INTEGER, geographic_value TEXT, update_date TEXT);
CREATE TABLE taxon_authors_lkp (
    taxon_author_id INTEGER, taxon_author TEXT, update_date TEXT,
    kingdom_id INTEGER, short_author TEXT
);
"""

_UNIT_COLUMNS = (
    "tsn, unit_name1, unit_name2, name_usage, unaccept_reason, credibility_rtng, "
    "completeness_rtng, currency_rating, parent_tsn, taxon_author_id, kingdom_id, "
    "rank_id, complete_name"
)


def build_itis_database(db_path: Path, sample: bool = True, extra_units: int = 0) -> Path:
    """Create an ITIS-shaped SQLite database.

    Args:
        db_path: Database file to create.
        sample: Insert the maple sample taxonomy.
        extra_units: Number of additional root units to insert.

    Returns:
        The database path.
    """
    connection = sqlite3.connect(str(db_path))
    try:
        connection.executescript(_SCHEMA)
        if sample:
            insert_sample_taxonomy(connection)
        if extra_units:
            connection.executemany(
                "INSERT INTO taxonomic_units (tsn, complete_name, kingdom_id, rank_id)"
                " VALUES (?, ?, 3, 220)",
                [(1_000_000 + index, f"Bulk unit {index}") for index in range(extra_units)],
            )
        connection.commit()
    finally:
        connection.close()
    return db_path


def insert_sample_taxonomy(connection: sqlite3.Connection) -> None:
    """Insert a small maple taxonomy with one row in every auxiliary table."""
    connection.executemany(
        f"INSERT INTO taxonomic_units ({_UNIT_COLUMNS}) VALUES "
        "(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            (202422, "Plantae", None, "valid", None, "TWG standards met", "complete",
             "current", None, None, 3, 10, "Plantae"),
            (954898, "Viridiplantae", None, "valid", None, "TWG standards met", "complete",
             "current", 202422, None, 3, 20, "Viridiplantae"),
            (28727, "Acer", None, "valid", None, "TWG standards met", "partial",
             "current", 954898, 100, 3, 180, "Acer"),
            (28728, "Acer", "rubrum", "accepted", None, "TWG standards met", "complete",
             "current", 28727, 100, 3, 220, "Acer rubrum"),
            (28729, "Acer", "drummondii", "not accepted", "synonym", "TWG standards met",
             None, None, 28727, 101, 3, 220, "Acer drummondii"),
            (183833, "Acer", "saccharum", "accepted", None, "TWG standards met", "complete",
             "current", 28727, None, 3, 220, "Acer saccharum"),
        ],
    )
    connection.executemany(
        "INSERT INTO vernaculars (tsn, vernacular_name, language) VALUES (?, ?, ?)",
        [
            (28728, "Red Maple", "en"),
            (28728, "Swamp Maple", "en"),
            (28728, "Érable rouge", "fr"),
            (28727, "maples", "en"),
            (183833, "Sugar Maple", "en"),
        ],
    )
    connection.executemany(
        "INSERT INTO jurisdiction (tsn, jurisdiction_value, origin) VALUES (?, ?, ?)",
        [(28728, "Canada", "Native"), (28728, "Continental US", "Native")],
    )
    connection.execute("INSERT INTO synonym_links (tsn, tsn_accepted) VALUES (28729, 28728)")
    connection.executemany(
        "INSERT INTO strippedauthor (taxon_author_id, shortauthor) VALUES (?, ?)",
        [(100, "L."), (101, "Pax")],
    )
    connection.executemany(
        "INSERT INTO taxon_authors_lkp (taxon_author_id, taxon_author) VALUES (?, ?)",
        [(100, "L."), (101, "Pax")],
    )
    connection.executemany(
        "INSERT INTO taxon_unit_types (kingdom_id, rank_id, rank_name) VALUES (?, ?, ?)",
        [(3, 10, "Kingdom"), (3, 20, "Subkingdom"), (3, 180, "Genus"), (3, 220, "Species")],
    )
    connection.execute("INSERT INTO kingdoms (kingdom_id, kingdom_name) VALUES (3, 'Plantae')")
    connection.executemany(
        "INSERT INTO reference_links (tsn, doc_id_prefix, documentation_id) VALUES (?, ?, ?)",
        [(28728, "PUB", 42), (28728, "EXP", 7), (28728, "SRC", 9), (28728, "XYZ", 1)],
    )
    connection.executemany(
        "INSERT INTO publications (pub_id_prefix, publication_id, reference_author, title,"
        " publication_name, pages) VALUES (?, ?, ?, ?, ?, ?)",
        [
            ("PUB", 42, "Gleason, H. A.", "Manual of Vascular Plants", "Van Nostrand", "810"),
            ("PUB", 43, "Kartesz, J. T.", "Synonymized Checklist", "Timber Press", "622"),
        ],
    )
    connection.execute(
        "INSERT INTO experts (expert_id_prefix, expert_id, expert, exp_comment, update_date)"
        " VALUES ('EXP', 7, 'A. Botanist', 'Aceraceae', '2001-01-01')"
    )
    connection.execute(
        "INSERT INTO other_sources (source_id_prefix, source_id, source_type, source, version,"
        " source_comment) VALUES ('SRC', 9, 'database', 'NRCS PLANTS', '1.0', 'USDA')"
    )
    connection.execute(
        "INSERT INTO comments (comment_id, commentator, comment_detail)"
        " VALUES (5, 'ITIS', 'Widespread in eastern North America')"
    )
    connection.execute("INSERT INTO tu_comments_links (tsn, comment_id) VALUES (28728, 5)")
    connection.execute(
        "INSERT INTO geographic_div (tsn, geographic_value) VALUES (28728, 'North America')"
    )


def execute_sql(db_path: Path, sql: str, params: tuple[object, ...] = ()) -> None:
    """Run one statement against a fixture database and commit."""
    connection = sqlite3.connect(str(db_path))
    try:
        connection.execute(sql, params)
        connection.commit()
    finally:
        connection.close()


def minimal_assembled_record(
    tsn: str,
    ancestors: tuple[RankEntry, ...] = (),
    common_names: tuple[CommonName, ...] = (),
) -> AssembledRecord:
    """Build an assembled record with only identity fields set."""
    record = FullRecord(
        tsn=tsn,
        parent_tsn=ancestors[-1].tsn if ancestors else None,
        kingdom=Kingdom(kingdom_id="3", kingdom_name="Plantae"),
        usage=Usage(taxon_usage_rating="accepted"),
        unaccept_reason=UnacceptReason(unaccept_reason=None),
        currency_rating=CurrencyRating(taxon_currency="current", rank_id="220"),
        completeness_rating=CompletenessRating(completeness="complete", rank_id="220"),
        credibility_rating=CredibilityRating(cred_rating="TWG standards met"),
        tax_rank=TaxRank(kingdom_id="3", kingdom_name="Plantae", rank_id="220", rank_name="Species"),
        scientific_name=ScientificName(combined_name=f"Taxon {tsn}"),
        taxon_author=TaxonAuthor(authorship=None),
        common_names=common_names,
        lookup_outcomes={"synonyms": LookupOutcome(status="empty", value=())},
    )
    return AssembledRecord(record=record, ancestors=ancestors)
