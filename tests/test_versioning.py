"""
Tests for wrapview.versioning module.

Tests version comparison including:
- Zero-padded segment comparison
- WrapDB revision suffixes
- Sorting and revision stripping
"""

from __future__ import annotations

import pytest

from wrapview.versioning import compare, is_newer, sort_versions, strip_wrap_revision


class TestVersionComparison:
    """Tests for compare()."""

    def test_numeric_segments_compare_by_magnitude(self):
        """Test that 1.2.9 is older than 1.2.10."""
        assert compare("1.2.9", "1.2.10") < 0
        assert compare("1.2.10", "1.2.9") > 0

    def test_revision_suffix_in_last_segment(self):
        """Test versions carrying a WrapDB revision."""
        assert compare("1.2.10-1", "1.2.9-1") > 0
        assert compare("1.2.9-2", "1.2.9-1") > 0

    @pytest.mark.parametrize("version", ["1.0", "1.2.3", "8.16.0-1", "v2", ""])
    def test_equal_versions(self, version):
        """Test that a version compares equal to itself."""
        assert compare(version, version) == 0

    def test_result_is_sign_only(self):
        """Test that compare returns exactly -1, 0 or 1."""
        assert compare("1.0", "9.0") == -1
        assert compare("10.0", "9.0") == 1

    def test_major_bump_outweighs_minor(self):
        """Test that a major bump wins regardless of minor digits."""
        assert compare("2.0", "1.99") > 0


class TestIsNewer:
    """Tests for is_newer()."""

    def test_newer(self):
        """Test strictly newer remote."""
        assert is_newer("1.3.1", "1.3.0") is True

    def test_same_is_not_newer(self):
        """Test equal versions."""
        assert is_newer("1.3.0", "1.3.0") is False

    def test_missing_current(self):
        """Test that anything is newer than nothing."""
        assert is_newer("0.1", None) is True


class TestSortVersions:
    """Tests for sort_versions()."""

    def test_newest_first_by_default(self):
        """Test default descending order."""
        assert sort_versions(["1.2.9-1", "1.2.10-1", "1.2.10-2"]) == [
            "1.2.10-2",
            "1.2.10-1",
            "1.2.9-1",
        ]

    def test_oldest_first(self):
        """Test ascending order."""
        assert sort_versions(["1.10", "1.9", "1.0"], newest_first=False) == [
            "1.0",
            "1.9",
            "1.10",
        ]


class TestStripWrapRevision:
    """Tests for strip_wrap_revision()."""

    def test_strips_revision(self):
        """Test removing the packaging revision."""
        assert strip_wrap_revision("8.16.0-1") == "8.16.0"
        assert strip_wrap_revision("1.3-6") == "1.3"

    def test_without_revision(self):
        """Test versions without revision are unchanged."""
        assert strip_wrap_revision("2.80.0") == "2.80.0"

    def test_only_trailing_number_removed(self):
        """Test hyphenated versions keep their non-numeric part."""
        assert strip_wrap_revision("2024-rc") == "2024-rc"
