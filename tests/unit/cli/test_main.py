"""Unit tests for CLI command handling."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from core.constants import (
    EXIT_BAD_ARGUMENTS,
    EXIT_OK,
    EXIT_RUN_FAILED,
    EXIT_UNREADABLE_SOURCE,
    EXIT_VERIFICATION_FAILED,
)
from core.load_types import StoreOptions
from store.segment_log_store import SegmentLogStore
from tests.itis_fixtures import SAMPLE_TSNS, build_itis_database


def test_cli_requires_two_positional_arguments(capsys: pytest.CaptureFixture[str]) -> None:
    """A single argument should print usage and exit with the argument status."""
    exit_code = main(["only-one.sqlite"])
    error_output = capsys.readouterr().err

    assert exit_code == EXIT_BAD_ARGUMENTS
    assert "usage:" in error_output


def test_cli_rejects_missing_source(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """A missing source file should exit with the unreadable-source status."""
    exit_code = main([str(tmp_path / "missing.sqlite"), str(tmp_path / "cache")])
    error_output = capsys.readouterr().err

    assert exit_code == EXIT_UNREADABLE_SOURCE
    assert "does not exist" in error_output


def test_cli_rejects_invalid_chunk_size(tmp_path: Path) -> None:
    """A non-positive chunk size should be reported as a configuration failure."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")

    exit_code = main([str(db_path), str(tmp_path / "cache"), "--chunk-size", "0"])

    assert exit_code == EXIT_RUN_FAILED


def test_cli_loads_every_unit(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """A successful load should report every record written."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")
    cache_dir = tmp_path / "cache"

    exit_code = main([str(db_path), str(cache_dir), "--chunk-size", "4"])
    output = capsys.readouterr().out

    assert exit_code == EXIT_OK
    assert f"Records written: {len(SAMPLE_TSNS)} of {len(SAMPLE_TSNS)}" in output
    with SegmentLogStore(StoreOptions(cache_dir=cache_dir)) as store:
        assert sorted(store.keys()) == sorted(SAMPLE_TSNS)


def test_cli_verify_passes_after_load(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """The verify flag should print a passing report after a clean load."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")

    exit_code = main([str(db_path), str(tmp_path / "cache"), "--verify", "--create-indexes"])
    output = capsys.readouterr().out

    assert exit_code == EXIT_OK
    assert "verification=passed" in output
    assert "Indexes created: 6" in output


def test_cli_verify_fails_on_stale_keys(tmp_path: Path) -> None:
    """Keys left over from an earlier source should fail verification."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")
    cache_dir = tmp_path / "cache"
    with SegmentLogStore(StoreOptions(cache_dir=cache_dir)) as store:
        store.put("999999", {"tsn": "999999"})

    exit_code = main([str(db_path), str(cache_dir), "--verify"])

    assert exit_code == EXIT_VERIFICATION_FAILED


def test_cli_store_config_overrides_segment_size(tmp_path: Path) -> None:
    """Store properties should apply unless a flag overrides them."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")
    cache_dir = tmp_path / "cache"
    properties_path = tmp_path / "store.yaml"
    properties_path.write_text("log_file_size_mb: 8\nno_caching: false\n", encoding="utf-8")

    exit_code = main([str(db_path), str(cache_dir), "--store-config", str(properties_path)])

    metadata = (cache_dir / "store.json").read_text(encoding="utf-8")
    assert exit_code == EXIT_OK
    assert '"log_file_size_mb": 8' in metadata


def test_cli_reports_invalid_store_config(tmp_path: Path) -> None:
    """An invalid property file should fail before loading."""
    db_path = build_itis_database(tmp_path / "itis.sqlite")
    properties_path = tmp_path / "store.yaml"
    properties_path.write_text("proxy_impl: redis\n", encoding="utf-8")

    exit_code = main(
        [str(db_path), str(tmp_path / "cache"), "--store-config", str(properties_path)]
    )

    assert exit_code == EXIT_RUN_FAILED
    assert not (tmp_path / "cache").exists()
