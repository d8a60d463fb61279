"""
Pytest configuration and shared fixtures for wrapview tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from wrapview.config import Settings
from wrapview.store import MarkerStore, PackageStore


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("settings.yaml", {"key": "value"})
    """
    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def settings(tmp_test_dir: Path) -> Settings:
    """Provide settings pointing at temporary store files."""
    return Settings(
        database=tmp_test_dir / "wrapview.sqlite",
        markers=tmp_test_dir / "markers.json",
    )


@pytest.fixture
def store(settings: Settings):
    """Provide an initialized package store, closed after the test."""
    package_store = PackageStore(settings.database)
    package_store.initialize()
    yield package_store
    package_store.close()


@pytest.fixture
def markers(settings: Settings) -> MarkerStore:
    """Provide a marker store in the temporary directory."""
    return MarkerStore(settings.markers)


@pytest.fixture
def sample_manifest_text() -> str:
    """
    Provide a small releases.json body.

    One package has no versions and must be skipped by the sync.
    """
    return (
        '{"zlib": {"versions": ["1.3.1-1", "1.3-6", "1.2.13-2"],'
        ' "dependency_names": ["zlib"]},'
        ' "curl": {"versions": ["8.16.0-1", "8.15.0-1"],'
        ' "dependency_names": ["libcurl"], "program_names": ["curl"]},'
        ' "empty": {"versions": []}}'
    )


@pytest.fixture
def sample_wrap_text() -> str:
    """Provide a curl .wrap release descriptor."""
    return (
        "[wrap-file]\n"
        "directory = curl-8.16.0\n"
        "source_url = https://github.com/curl/curl/releases/download/"
        "curl-8_16_0/curl-8.16.0.tar.xz\n"
        "source_filename = curl-8.16.0.tar.xz\n"
        "patch_directory = curl\n"
        "\n"
        "[provide]\n"
        "dependency_names = libcurl\n"
        "program_names = curl\n"
    )
