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

"""Literal value parsing for the Meson option DSL.

parse_value() interprets one token. The first matching rule wins:

1. "+" concatenation of quoted strings -> str
2. true / false -> bool
3. Integer literal -> int
4. Decimal literal -> float
5. Single-quoted string -> str (unescapes \\' and \\\\)
6. [ ... ] -> list (elements parsed recursively)
7. { ... } -> dict (string keys only; malformed pairs skipped)
8. Anything else -> the trimmed text (bare identifier)

No arithmetic and no variable resolution is performed.
"""

from __future__ import annotations

import re
from typing import Any

from .tokenizer import split_top_level

_INT = re.compile(r"^[-+]?[0-9]+$")
_FLOAT = re.compile(r"^[-+]?([0-9]*\.[0-9]+|[0-9]+\.[0-9]*)$")


def _is_quoted(text: str) -> bool:
    return len(text) >= 2 and text.startswith("'") and text.endswith("'")


def _unquote(text: str) -> str:
    return text[1:-1].replace("\\'", "'").replace("\\\\", "\\")


def parse_value(text: str) -> Any:
    """Parse a Meson literal into a Python value.

    Args:
        text: Raw token text.

    Returns:
        bool, int, float, str, list or dict depending on the literal.

    Example:
        ```python
        parse_value("'it\\\\'s'")        # "it's"
        parse_value("[1, 2, 'x']")      # [1, 2, "x"]
        parse_value("'a' + 'b'")        # "ab"
        parse_value("{'k': true}")      # {"k": True}
        ```
    """
    value = text.strip()

    if "+" in value:
        parts = split_top_level(value, "+")
        if len(parts) > 1 and all(_is_quoted(part) for part in parts):
            return "".join(_unquote(part) for part in parts)

    if value == "true":
        return True
    if value == "false":
        return False

    if _INT.match(value):
        return int(value)
    if _FLOAT.match(value):
        return float(value)

    if _is_quoted(value):
        return _unquote(value)

    if value.startswith("[") and value.endswith("]"):
        return [parse_value(item) for item in split_top_level(value[1:-1], ",")]

    if value.startswith("{") and value.endswith("}"):
        result: dict[str, Any] = {}
        for pair in split_top_level(value[1:-1], ","):
            pair_parts = split_top_level(pair, ":")
            if len(pair_parts) != 2:
                continue
            key = parse_value(pair_parts[0])
            if isinstance(key, str):
                result[key] = parse_value(pair_parts[1])
        return result

    return value
