"""ITIS loader exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class ItisLoaderError(Exception):
    """Base exception for all loader failures."""


class ItisConfigError(ItisLoaderError):
    """Raised for invalid runtime or store configuration."""


class ItisDependencyError(ItisLoaderError):
    """Raised when a native driver or optional runtime dependency is missing."""


class ItisSourceUnavailableError(ItisLoaderError):
    """Raised when the source database cannot be opened or counted."""


class ItisCyclicHierarchyError(ItisLoaderError):
    """Raised when parent links revisit a TSN already on the ancestor path."""

    def __init__(self, tsn: str, path: tuple[str, ...]) -> None:
        self.tsn = tsn
        self.path = path
        chain = " -> ".join(path + (tsn,))
        super().__init__(
            f"Cyclic parent chain detected at tsn {tsn}: {chain}. "
            "Fix parent_tsn values in taxonomic_units before reloading."
        )


class ItisStoreError(ItisLoaderError):
    """Raised for record store persistence failures."""


class ItisVerificationError(ItisLoaderError):
    """Raised when post-load verification cannot run."""
