# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Extraction of option() declarations from meson_options.txt content.

Extraction Steps:

1. Strip "#" comments line by line and join the lines with spaces.
2. Find every "option(" occurrence and its matching ")" (quotes and
   escapes respected). An unterminated block ends extraction.
3. Split the arguments on top-level commas. The first argument is the
   option name; each further argument is a "key: value" pair split on the
   first top-level colon.
4. Validate the assembled mapping as a MesonOption. Blocks that do not
   validate are skipped; callers that pass a diagnostics list receive a
   SkippedOption for each of them.

Comment Handling:
    By default a "#" always starts a comment, even inside a quoted string,
    so existing declaration files parse exactly as they always have. Pass
    quote_aware_comments=True to keep "#" characters inside strings.

Example:
    Parse a small options file:
        ```python
        from wrapview.options import parse_options

        options = parse_options(
            "option('tests', type: 'boolean', value: false)\\n"
            "option('backend', type: 'combo', choices: ['x11', 'wayland'])"
        )
        # [MesonOption(name="tests", ...), MesonOption(name="backend", ...)]
        ```
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
import math
from typing import Any

from pydantic import ValidationError

from wrapview.logging import Logger, get_global_logger

from .schema import MesonOption, SkippedOption
from .tokenizer import find_closing_paren, split_top_level, strip_line_comment
from .values import parse_value

OPTION_PREFIX = "option("
OPTIONS_FILENAMES = ("meson_options.txt", "meson.options")


def _flatten(content: str, quote_aware: bool) -> str:
    return " ".join(
        strip_line_comment(line, quote_aware=quote_aware)
        for line in content.split("\n")
    )


def _assemble(raw_args: str) -> dict[str, Any]:
    args = split_top_level(raw_args, ",")
    parsed: dict[str, Any] = {}
    if args and args[0]:
        parsed["name"] = parse_value(args[0])
    for arg in args[1:]:
        key_value = split_top_level(arg, ":")
        if len(key_value) == 2:
            parsed[key_value[0]] = parse_value(key_value[1])
    return parsed


def parse_options(
    content: str,
    *,
    diagnostics: list[SkippedOption] | None = None,
    quote_aware_comments: bool = False,
    logger: Logger | None = None,
) -> list[MesonOption]:
    """Parse every option() declaration in a Meson options file.

    Args:
        content: File content.
        diagnostics: Optional list that receives a SkippedOption for each
            declaration that fails validation.
        quote_aware_comments: Keep "#" characters inside quoted strings.
            Default is False.
        logger: Optional logger. Defaults to the global logger.

    Returns:
        Validated options in declaration order. Invalid declarations are
            skipped, never raised.

    """
    if logger is None:
        logger = get_global_logger()

    text = _flatten(content, quote_aware_comments)
    results: list[MesonOption] = []

    index = text.find(OPTION_PREFIX)
    while index != -1:
        start = index + len(OPTION_PREFIX)
        end = find_closing_paren(text, start)
        if end == -1:
            logger.debug("OPTIONS", f"Unterminated option( at offset {index}")
            break

        raw_args = text[start:end]
        try:
            results.append(MesonOption.model_validate(_assemble(raw_args)))
        except ValidationError as err:
            reason = "; ".join(
                f"{'.'.join(str(p) for p in e['loc']) or '(root)'}: {e['msg']}"
                for e in err.errors()
            )
            logger.debug("OPTIONS", f"Skipping invalid option: {reason}")
            if diagnostics is not None:
                diagnostics.append(SkippedOption(raw=raw_args.strip(), reason=reason))

        index = text.find(OPTION_PREFIX, end)

    logger.verbose("OPTIONS", f"Parsed {len(results)} option(s)")
    return results


def find_options_file(files: Mapping[str, str]) -> str | None:
    """Pick the options file from a patch's file listing.

    Args:
        files: Mapping of relative path to file content.

    Returns:
        The chosen path (root-level files first, then the shallowest
            nested one), or None when the listing has no options file.
    """
    candidates = [
        path
        for path in files
        if path.replace("\\", "/").rsplit("/", 1)[-1] in OPTIONS_FILENAMES
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda p: (p.replace("\\", "/").count("/"), p))


def preview_options(
    files: Mapping[str, str],
    *,
    diagnostics: list[SkippedOption] | None = None,
    logger: Logger | None = None,
) -> list[MesonOption]:
    """Parse the build options shipped in a patch, if any."""
    path = find_options_file(files)
    if path is None:
        return []
    return parse_options(files[path], diagnostics=diagnostics, logger=logger)


def _format_float(value: float) -> str:
    # Declarations have no exponent syntax, so write the shortest repr positionally.
    if not math.isfinite(value):
        raise ValueError(f"Cannot format non-finite option value {value!r}")
    text = format(Decimal(repr(value)), "f")
    return text if "." in text else text + ".0"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    if isinstance(value, list):
        return "[" + ", ".join(_format_value(v) for v in value) + "]"
    if isinstance(value, dict):
        pairs = (f"{_format_value(k)}: {_format_value(v)}" for k, v in value.items())
        return "{" + ", ".join(pairs) + "}"
    raise TypeError(f"Cannot format option value of type {type(value).__name__}")


def format_option(option: MesonOption) -> str:
    """Render an option back to declaration text.

    Example:
        ```python
        format_option(MesonOption(name="tests", type="boolean", value=False))
        # "option('tests', type: 'boolean', value: false)"
        ```
    """
    fields = option.as_dict()
    parts = [_format_value(fields.pop("name"))]
    parts.extend(f"{key}: {_format_value(value)}" for key, value in fields.items())
    return "option(" + ", ".join(parts) + ")"
