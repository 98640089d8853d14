"""Typed parsing for YAML store property files.

This module loads the optional store configuration file accepted by the CLI.
Keys mirror the cache properties of the ITIS proxy so existing property sets
can be carried over unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, cast

import yaml

from core.config import parse_bool, validate_store_implementation
from core.errors import ItisConfigError
from core.load_types import StoreOptions

SUPPORTED_PROPERTY_KEYS = ("cache_location", "no_caching", "proxy_impl", "log_file_size_mb")


@dataclass(frozen=True)
class StoreProperties:
    """Store settings read from a property file; ``None`` means unset."""

    cache_location: str | None = None
    no_caching: bool | None = None
    proxy_impl: str | None = None
    log_file_size_mb: int | None = None


def load_store_properties(properties_path: str) -> StoreProperties:
    """Load and validate a YAML store property file.

    Args:
        properties_path: File path to the YAML document.

    Returns:
        Parsed store properties.

    Raises:
        ItisConfigError: If the file is missing, unreadable, or invalid.
    """
    payload = _load_yaml_payload(properties_path)
    mapping = _expect_mapping(payload)
    _validate_keys(mapping)
    return StoreProperties(
        cache_location=_optional_string(mapping, "cache_location"),
        no_caching=_optional_bool(mapping, "no_caching"),
        proxy_impl=_optional_implementation(mapping),
        log_file_size_mb=_optional_positive_int(mapping, "log_file_size_mb"),
    )


def apply_store_properties(options: StoreOptions, properties: StoreProperties) -> StoreOptions:
    """Overlay set property values onto store options.

    Args:
        options: Base store options.
        properties: Values read from a property file.

    Returns:
        Updated store options.
    """
    updated = options
    if properties.cache_location is not None:
        updated = replace(updated, cache_dir=Path(properties.cache_location).expanduser())
    if properties.no_caching is not None:
        updated = replace(updated, no_caching=properties.no_caching)
    if properties.proxy_impl is not None:
        updated = replace(updated, implementation=properties.proxy_impl)
    if properties.log_file_size_mb is not None:
        updated = replace(updated, log_file_size_mb=properties.log_file_size_mb)
    return updated


def _load_yaml_payload(properties_path: str) -> object:
    properties_file = Path(properties_path).expanduser().resolve()
    if not properties_file.exists():
        raise ItisConfigError(
            f"Store property file does not exist at {properties_file}. "
            "Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(properties_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise ItisConfigError(
            f"Failed to read store properties at {properties_file}: {error}. "
            "Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise ItisConfigError(
            f"Failed to parse YAML store properties at {properties_file}: {error}. "
            "Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    return payload


def _expect_mapping(value: object) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise ItisConfigError(
            f"Invalid store properties: expected object mapping, got {type(value).__name__}."
        )
    normalized = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise ItisConfigError(
                f"Invalid store properties: expected string keys, got {type(key).__name__}."
            )
        normalized[key] = item
    return normalized


def _validate_keys(mapping: Mapping[str, object]) -> None:
    unknown_keys = sorted(set(mapping) - set(SUPPORTED_PROPERTY_KEYS))
    if unknown_keys:
        raise ItisConfigError(
            f"Store properties contain unknown fields: {', '.join(unknown_keys)}. "
            f"Supported fields: {', '.join(SUPPORTED_PROPERTY_KEYS)}."
        )


def _optional_string(mapping: Mapping[str, object], field_name: str) -> str | None:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return None
    if isinstance(raw_value, str):
        normalized_value = raw_value.strip()
        return normalized_value if normalized_value else None
    raise ItisConfigError(f"Store property '{field_name}' must be a string when provided.")


def _optional_bool(mapping: Mapping[str, object], field_name: str) -> bool | None:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return None
    if isinstance(raw_value, bool):
        return raw_value
    if isinstance(raw_value, str):
        return parse_bool(field_name, raw_value)
    raise ItisConfigError(f"Store property '{field_name}' must be a boolean when provided.")


def _optional_implementation(mapping: Mapping[str, object]) -> str | None:
    raw_value = _optional_string(mapping, "proxy_impl")
    if raw_value is None:
        return None
    return validate_store_implementation(raw_value)


def _optional_positive_int(mapping: Mapping[str, object], field_name: str) -> int | None:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return None
    if isinstance(raw_value, bool) or not isinstance(raw_value, (int, str)):
        raise ItisConfigError(f"Store property '{field_name}' must be an integer when provided.")
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ItisConfigError(
            f"Store property '{field_name}' must be an integer, got '{raw_value}'."
        ) from error
    if value <= 0:
        raise ItisConfigError(f"Store property '{field_name}' must be > 0, got {value}.")
    return value
