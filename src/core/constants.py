"""Core constants used across loader modules.

This module centralizes defaults, table names, and CLI exit codes.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_CHUNK_SIZE = 4000
DEFAULT_QUERY_TIMEOUT_SECONDS = 30.0
DEFAULT_STORE_IMPLEMENTATION = "caching"
DEFAULT_LOG_FILE_SIZE_MB = 128
DEFAULT_NO_CACHING = True
DEFAULT_PROGRESS_INTERVAL = 100
PROGRESS_DOT_INTERVAL = 10
LANCE_FLUSH_ROWS = 1000
LANCE_WRITE_THROUGH_ROWS = 64
SUPPORTED_STORE_IMPLEMENTATIONS = ("caching", "lance")

DOC_TYPE_PUBLICATION = "PUB"
DOC_TYPE_OTHER_SOURCE = "SRC"
DOC_TYPE_EXPERT = "EXP"

SEGMENTS_DIR_NAME = "segments"
SEGMENT_FILE_SUFFIX = ".log"
STORE_METADATA_FILE_NAME = "store.json"
LANCE_DIR_NAME = "records.lance"

RECOMMENDED_INDEXES = (
    ("jurisdiction_jurisdiction_index_tsn", "jurisdiction", "tsn"),
    ("taxonomic_units_tsn_index", "taxonomic_units", "tsn"),
    ("taxonomic_units_parent_tsn_index", "taxonomic_units", "parent_tsn"),
    ("strippedauthor_author_id_index", "strippedauthor", "taxon_author_id"),
    ("synonym_links_tsn_index", "synonym_links", "tsn"),
    ("synonym_links_tsn_accepted_index", "synonym_links", "tsn_accepted"),
    ("taxonomic_units_taxon_author_id_index", "taxonomic_units", "taxon_author_id"),
)

EXIT_OK = 0
EXIT_VERIFICATION_FAILED = 1
EXIT_BAD_ARGUMENTS = 42
EXIT_UNREADABLE_SOURCE = 43
EXIT_MISSING_DRIVER = 44
EXIT_RUN_FAILED = 45
