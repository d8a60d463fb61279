"""
Tests for wrapview.options module.

Tests the Meson option DSL parser including:
- Top-level splitting with quotes and nesting
- Literal value parsing
- option() extraction, validation and diagnostics
- Options file discovery in a patch listing
"""

from __future__ import annotations

import pytest

from wrapview.options import (
    MesonOption,
    SkippedOption,
    find_options_file,
    format_option,
    parse_options,
    parse_value,
    preview_options,
    split_top_level,
)


class TestSplitTopLevel:
    """Tests for split_top_level()."""

    def test_plain_split(self):
        """Test a simple comma list with whitespace."""
        assert split_top_level(" a , b ,c ", ",") == ["a", "b", "c"]

    def test_separator_inside_quotes(self):
        """Test separators inside quoted strings do not split."""
        assert split_top_level("a,'b,c',d", ",") == ["a", "'b,c'", "d"]

    def test_escaped_quote(self):
        """Test an escaped quote does not end the string."""
        assert split_top_level(r"'it\'s, fine',x", ",") == [r"'it\'s, fine'", "x"]

    def test_nested_list_element(self):
        """Test a bracketed element stays whole."""
        assert split_top_level("[1,2],3", ",") == ["[1,2]", "3"]

    def test_nesting(self):
        """Test brackets, braces and parentheses nest."""
        assert split_top_level("[1,2],{'a': 1, 'b': 2},f(x,y)", ",") == [
            "[1,2]",
            "{'a': 1, 'b': 2}",
            "f(x,y)",
        ]

    def test_blank_input(self):
        """Test blank input yields no parts."""
        assert split_top_level("", ",") == []
        assert split_top_level("   ", ",") == []

    def test_colon_separator(self):
        """Test splitting a key/value pair."""
        assert split_top_level("value: 'a:b'", ":") == ["value", "'a:b'"]


class TestParseValue:
    """Tests for parse_value()."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("true", True),
            ("false", False),
            ("42", 42),
            ("-7", -7),
            ("+3", 3),
            ("1.5", 1.5),
            (".5", 0.5),
            ("2.", 2.0),
            ("'hello'", "hello"),
            ("some_identifier", "some_identifier"),
        ],
    )
    def test_scalars(self, text, expected):
        """Test scalar literals."""
        result = parse_value(text)
        assert result == expected
        assert type(result) is type(expected)

    def test_unescape(self):
        """Test escaped quote and backslash."""
        assert parse_value(r"'it\'s'") == "it's"
        assert parse_value(r"'a\\b'") == "a\\b"

    def test_concatenation(self):
        """Test joining quoted strings with +."""
        assert parse_value("'foo' + 'bar' + 'baz'") == "foobarbaz"

    def test_concatenation_with_identifier_not_joined(self):
        """Test + with a non-string part yields the trimmed text."""
        assert parse_value("'foo' + bar") == "'foo' + bar"

    def test_quoted_plus(self):
        """Test a plus inside a single string."""
        assert parse_value("'a+b'") == "a+b"

    def test_list(self):
        """Test arrays are parsed recursively."""
        assert parse_value("['x11', 'wayland', 3, [true]]") == ["x11", "wayland", 3, [True]]
        assert parse_value("[]") == []

    def test_dict(self):
        """Test dict literals with nested values."""
        assert parse_value("{'a': 1, 'b': ['x', 'y']}") == {"a": 1, "b": ["x", "y"]}

    def test_dict_non_string_key_skipped(self):
        """Test numeric keys are dropped."""
        assert parse_value("{'a': 1, 3: 4}") == {"a": 1}

    def test_dict_malformed_pair_skipped(self):
        """Test a pair without a colon is dropped."""
        assert parse_value("{'a': 1, broken}") == {"a": 1}


class TestParseOptions:
    """Tests for parse_options()."""

    def test_single_option(self):
        """Test one full declaration."""
        options = parse_options(
            "option('tests', type : 'boolean', value : false,\n"
            "       description : 'Build the test suite')\n"
        )
        assert options == [
            MesonOption(
                name="tests",
                type="boolean",
                value=False,
                description="Build the test suite",
            )
        ]

    def test_multiple_in_order(self):
        """Test declaration order is preserved."""
        options = parse_options(
            "option('b', type: 'string')\n"
            "option('a', type: 'combo', choices: ['x', 'y'], value: 'x')\n"
        )
        assert [o.name for o in options] == ["b", "a"]
        assert options[1].choices == ["x", "y"]

    def test_integer_bounds_and_yield(self):
        """Test min/max and the yield keyword."""
        (option,) = parse_options(
            "option('jobs', type: 'integer', min: 1, max: 64, value: 4, yield: true)"
        )
        assert option.min == 1
        assert option.max == 64
        assert option.yield_ is True
        assert option.as_dict()["yield"] is True

    def test_feature_with_deprecated_mapping(self):
        """Test deprecated accepting a dict of replacements."""
        (option,) = parse_options(
            "option('x', type: 'feature', value: 'auto',"
            " deprecated: {'enabled': 'true', 'disabled': 'false'})"
        )
        assert option.deprecated == {"enabled": "true", "disabled": "false"}

    def test_comments_removed(self):
        """Test full-line and trailing comments."""
        options = parse_options(
            "# Build options\n"
            "option('docs', type: 'boolean', value: true) # trailing\n"
            "# option('ghost', type: 'boolean')\n"
        )
        assert [o.name for o in options] == ["docs"]

    def test_hash_in_string_truncates_by_default(self):
        """Test the default comment handling cuts inside strings."""
        content = "option('x', type: 'string', value: 'a#b')"
        assert parse_options(content) == []

    def test_quote_aware_comments(self):
        """Test the opt-in quote aware comment handling."""
        content = "option('x', type: 'string', value: 'a#b') # note"
        (option,) = parse_options(content, quote_aware_comments=True)
        assert option.value == "a#b"

    def test_invalid_block_skipped_with_diagnostics(self):
        """Test invalid declarations are skipped and reported."""
        skipped: list[SkippedOption] = []
        options = parse_options(
            "option('no_type', value: true)\n"
            "option('ok', type: 'boolean')\n"
            "option('bad_min', type: 'integer', min: many)\n",
            diagnostics=skipped,
        )
        assert [o.name for o in options] == ["ok"]
        assert [s.raw for s in skipped] == [
            "'no_type', value: true",
            "'bad_min', type: 'integer', min: many",
        ]
        assert "type" in skipped[0].reason
        assert "min" in skipped[1].reason

    def test_unterminated_block_ends_extraction(self):
        """Test options before an unterminated block are kept."""
        options = parse_options(
            "option('a', type: 'boolean')\noption('b', type: 'string'"
        )
        assert [o.name for o in options] == ["a"]

    def test_paren_inside_string(self):
        """Test parentheses inside strings do not close the block."""
        (option,) = parse_options(
            "option('x', type: 'string', description: 'uses (optional) deps')"
        )
        assert option.description == "uses (optional) deps"

    def test_unknown_keys_dropped(self):
        """Test unrecognized keyword arguments are ignored."""
        (option,) = parse_options("option('x', type: 'boolean', since: '1.0')")
        assert "since" not in option.as_dict()

    def test_empty_content(self):
        """Test content without declarations."""
        assert parse_options("") == []
        assert parse_options("project('foo')") == []

    @pytest.mark.parametrize(
        "declared",
        [
            MesonOption(
                name="backend",
                type="combo",
                choices=["x11", "wayland"],
                value="x11",
                description="It's the backend",
            ),
            MesonOption(name="jobs", type="integer", min=-4, max=64, value=-1),
            MesonOption(name="ratio", type="string", value=1e20, min=1e-05, max=-2.5),
            MesonOption(name="env", type="string", value={"CC": "gcc", "N": 2}),
            MesonOption(name="langs", type="array", value=["c", 3, True, 0.5]),
            MesonOption(name="old", type="boolean", deprecated=["a", "b"]),
            MesonOption(
                name="mode",
                type="feature",
                value="auto",
                deprecated={"enabled": "true", "disabled": "false"},
            ),
            MesonOption(name="docs", type="boolean", value=False, yield_=True),
        ],
        ids=[
            "combo",
            "ints",
            "floats",
            "dict",
            "list",
            "deprecated-list",
            "deprecated-map",
            "yield",
        ],
    )
    def test_format_round_trip(self, declared):
        """Test formatted declarations parse back to the same option."""
        assert parse_options(format_option(declared)) == [declared]

    def test_format_float_positional(self):
        """Test floats are written without exponent notation."""
        text = format_option(MesonOption(name="r", type="string", value=1e20, min=1e-05))
        assert text == (
            "option('r', type: 'string', value: 100000000000000000000.0, min: 0.00001)"
        )


class TestOptionsFile:
    """Tests for find_options_file() and preview_options()."""

    def test_root_file_preferred(self):
        """Test the shallowest options file wins."""
        files = {
            "subprojects/foo/meson_options.txt": "",
            "meson.options": "",
            "meson.build": "",
        }
        assert find_options_file(files) == "meson.options"

    def test_tie_broken_by_path(self):
        """Test files at the same depth are ordered by path."""
        files = {"meson_options.txt": "", "meson.options": ""}
        assert find_options_file(files) == "meson.options"

    def test_no_options_file(self):
        """Test listings without an options file."""
        assert find_options_file({"meson.build": ""}) is None
        assert preview_options({"meson.build": ""}) == []

    def test_preview(self):
        """Test parsing the options shipped in a patch listing."""
        files = {
            "meson.build": "project('zlib', 'c')",
            "meson_options.txt": "option('tests', type: 'feature', value: 'auto')",
        }
        (option,) = preview_options(files)
        assert option.name == "tests"
        assert option.value == "auto"
