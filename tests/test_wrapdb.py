"""
Tests for wrapview.wrapdb module.

Tests the WrapDB client including:
- Release manifest parsing and hashing
- .wrap descriptor parsing ([wrap-file], [wrap-git], [provide])
- Mocked manifest and descriptor downloads
"""

from __future__ import annotations

import hashlib

import pytest
import requests_mock

from wrapview.exceptions import NetworkError, ResponseParseError
from wrapview.wrapdb import (
    DEFAULT_BASE_URL,
    ManifestEntry,
    ReleaseDescriptor,
    fetch_releases,
    fetch_wrap,
    parse_releases,
    parse_wrap_file,
    wrap_url,
)


class TestParseReleases:
    """Tests for parse_releases()."""

    def test_entries(self, sample_manifest_text):
        """Test manifest entries become ManifestEntry records."""
        manifest = parse_releases(sample_manifest_text)
        assert manifest.packages["curl"] == ManifestEntry(
            versions=("8.16.0-1", "8.15.0-1"),
            dependency_names=("libcurl",),
            program_names=("curl",),
        )
        assert manifest.packages["empty"].versions == ()

    def test_hash_is_sha256_of_body(self, sample_manifest_text):
        """Test the manifest hash covers the raw body."""
        manifest = parse_releases(sample_manifest_text)
        expected = hashlib.sha256(sample_manifest_text.encode("utf-8")).hexdigest()
        assert manifest.hash == expected

    def test_different_body_different_hash(self):
        """Test any body change changes the hash."""
        assert parse_releases("{}").hash != parse_releases("{ }").hash

    @pytest.mark.parametrize(
        "body",
        [
            "not json",
            "[]",
            '{"zlib": []}',
            '{"zlib": {"versions": "1.3.1-1"}}',
            '{"zlib": {"versions": [1]}}',
        ],
    )
    def test_invalid_bodies(self, body):
        """Test malformed manifests raise ResponseParseError."""
        with pytest.raises(ResponseParseError) as exc_info:
            parse_releases(body)
        assert exc_info.value.body == body


class TestParseWrapFile:
    """Tests for parse_wrap_file()."""

    def test_wrap_file(self, sample_wrap_text):
        """Test a [wrap-file] descriptor with a patch directory."""
        descriptor = parse_wrap_file(sample_wrap_text)
        assert descriptor == ReleaseDescriptor(
            source_url=(
                "https://github.com/curl/curl/releases/download/"
                "curl-8_16_0/curl-8.16.0.tar.xz"
            ),
            dependency_names=("libcurl",),
            program_names=("curl",),
            has_patch_url=True,
        )

    def test_provide_keys_are_dependencies(self):
        """Test "dep = variable" entries name dependencies with case kept."""
        descriptor = parse_wrap_file(
            "[wrap-file]\n"
            "source_url = https://download.gnome.org/sources/glib/2.80/glib-2.80.0.tar.xz\n"
            "\n"
            "[provide]\n"
            "glib-2.0 = glib_dep\n"
            "GLib = glib_dep\n"
            "program_names = glib-mkenums, glib-genmarshal\n"
        )
        assert descriptor.dependency_names == ("glib-2.0", "GLib")
        assert descriptor.program_names == ("glib-mkenums", "glib-genmarshal")
        assert descriptor.has_patch_url is False

    def test_wrap_git(self):
        """Test a [wrap-git] descriptor uses its url."""
        descriptor = parse_wrap_file(
            "[wrap-git]\n"
            "url = https://gitlab.freedesktop.org/cairo/cairo.git\n"
            "revision = 1.18.0\n"
        )
        assert descriptor.source_url == "https://gitlab.freedesktop.org/cairo/cairo.git"

    def test_no_source(self):
        """Test a descriptor without source sections."""
        descriptor = parse_wrap_file("[provide]\nzlib = zlib_dep\n")
        assert descriptor.source_url is None
        assert descriptor.dependency_names == ("zlib",)

    def test_percent_signs_kept(self):
        """Test URLs with percent escapes are not interpolated."""
        descriptor = parse_wrap_file(
            "[wrap-file]\nsource_url = https://example.org/a%20b.tar.gz\n"
        )
        assert descriptor.source_url == "https://example.org/a%20b.tar.gz"

    def test_invalid_ini(self):
        """Test text without section headers."""
        with pytest.raises(ResponseParseError):
            parse_wrap_file("source_url = https://example.org/x.tar.gz\n")


class TestFetch:
    """Tests for fetch_releases() and fetch_wrap()."""

    def test_wrap_url(self):
        """Test the descriptor URL layout."""
        assert wrap_url("zlib", "1.3.1-1") == (
            f"{DEFAULT_BASE_URL}/zlib_1.3.1-1/zlib.wrap"
        )

    def test_fetch_releases(self, sample_manifest_text):
        """Test downloading and parsing the manifest."""
        with requests_mock.Mocker() as m:
            m.get(f"{DEFAULT_BASE_URL}/releases.json", text=sample_manifest_text)
            manifest = fetch_releases()

        assert set(manifest.packages) == {"zlib", "curl", "empty"}

    def test_fetch_releases_custom_base(self):
        """Test a mirror base URL."""
        with requests_mock.Mocker() as m:
            m.get("https://mirror.example.org/v2/releases.json", text="{}")
            manifest = fetch_releases(base_url="https://mirror.example.org/v2")

        assert manifest.packages == {}

    def test_fetch_wrap(self, sample_wrap_text):
        """Test downloading one descriptor."""
        with requests_mock.Mocker() as m:
            m.get(wrap_url("curl", "8.16.0-1"), text=sample_wrap_text)
            descriptor = fetch_wrap("curl", "8.16.0-1")

        assert descriptor.program_names == ("curl",)

    def test_fetch_wrap_not_found(self):
        """Test an unknown version surfaces as NetworkError."""
        with requests_mock.Mocker() as m:
            m.get(wrap_url("zlib", "0.0-1"), status_code=404)
            with pytest.raises(NetworkError) as exc_info:
                fetch_wrap("zlib", "0.0-1")

        assert exc_info.value.status_code == 404
        assert "zlib@0.0-1" in str(exc_info.value)
