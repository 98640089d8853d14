"""Runtime configuration model for the loader.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_LOG_FILE_SIZE_MB,
    DEFAULT_NO_CACHING,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_QUERY_TIMEOUT_SECONDS,
    DEFAULT_STORE_IMPLEMENTATION,
    SUPPORTED_STORE_IMPLEMENTATIONS,
)
from core.errors import ItisConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class LoaderConfig:
    """Validated runtime configuration.

    Attributes:
        chunk_size: Rows fetched per paginated source query.
        query_timeout_seconds: Best-effort timeout for chunk queries.
        store_implementation: Record store selector.
        log_file_size_mb: Store log segment size in megabytes.
        no_caching: Flush every record write through to disk.
        progress_interval: Records between throughput log events.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    query_timeout_seconds: float = DEFAULT_QUERY_TIMEOUT_SECONDS
    store_implementation: str = DEFAULT_STORE_IMPLEMENTATION
    log_file_size_mb: int = DEFAULT_LOG_FILE_SIZE_MB
    no_caching: bool = DEFAULT_NO_CACHING
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL

    @classmethod
    def from_env(cls) -> "LoaderConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ItisConfigError: If environment values are invalid.
        """
        store_implementation = os.getenv("ITIS_STORE_IMPL", DEFAULT_STORE_IMPLEMENTATION)
        return cls(
            chunk_size=_parse_positive_int(
                "ITIS_CHUNK_SIZE", os.getenv("ITIS_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))
            ),
            query_timeout_seconds=_parse_timeout(
                os.getenv("ITIS_QUERY_TIMEOUT_SECONDS", str(DEFAULT_QUERY_TIMEOUT_SECONDS))
            ),
            store_implementation=validate_store_implementation(store_implementation),
            log_file_size_mb=_parse_positive_int(
                "ITIS_LOG_FILE_SIZE_MB",
                os.getenv("ITIS_LOG_FILE_SIZE_MB", str(DEFAULT_LOG_FILE_SIZE_MB)),
            ),
            no_caching=parse_bool(
                "ITIS_NO_CACHING", os.getenv("ITIS_NO_CACHING", str(DEFAULT_NO_CACHING))
            ),
            progress_interval=_parse_positive_int(
                "ITIS_PROGRESS_INTERVAL",
                os.getenv("ITIS_PROGRESS_INTERVAL", str(DEFAULT_PROGRESS_INTERVAL)),
            ),
        )


def validate_store_implementation(value: str) -> str:
    """Return a supported store selector or raise.

    Args:
        value: Raw selector value.

    Returns:
        Normalized selector.

    Raises:
        ItisConfigError: If the selector is unknown.
    """
    normalized = value.strip().lower()
    if normalized not in SUPPORTED_STORE_IMPLEMENTATIONS:
        raise ItisConfigError(
            f"Unsupported store implementation '{value}'. "
            f"Choose one of {', '.join(SUPPORTED_STORE_IMPLEMENTATIONS)}."
        )
    return normalized


def parse_bool(name: str, raw_value: str) -> bool:
    """Parse a boolean flag value.

    Args:
        name: Setting name used in error messages.
        raw_value: Raw string value.

    Returns:
        Parsed boolean.

    Raises:
        ItisConfigError: If the value is not a recognized boolean.
    """
    lowered = raw_value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ItisConfigError(
        f"Invalid {name} value: expected true/false, got '{raw_value}'."
    )


def _parse_positive_int(name: str, raw_value: str) -> int:
    """Parse a strictly positive integer setting.

    Args:
        name: Setting name used in error messages.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        ItisConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ItisConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a positive number."
        ) from error
    if value <= 0:
        raise ItisConfigError(f"Invalid {name} value: expected > 0, got {value}.")
    return value


def _parse_timeout(raw_value: str) -> float:
    try:
        value = float(raw_value)
    except ValueError as error:
        raise ItisConfigError(
            "Invalid ITIS_QUERY_TIMEOUT_SECONDS value: "
            f"expected number, got '{raw_value}'."
        ) from error
    if value < 0:
        raise ItisConfigError("Invalid ITIS_QUERY_TIMEOUT_SECONDS value: must be >= 0.")
    return value
