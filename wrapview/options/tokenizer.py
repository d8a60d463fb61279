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

"""Quote and bracket aware splitting of Meson option text.

The Meson option DSL only has single-quoted strings. Inside a string a
backslash escapes the next character unconditionally, including the quote.
Outside strings, parentheses, brackets and braces nest; a separator only
splits at nesting depth zero.

The same scanner is used for comma-separated argument lists, "key: value"
pairs, array and dict contents, and "+" string concatenation.
"""

from __future__ import annotations


def split_top_level(text: str, separator: str) -> list[str]:
    """Split text on a separator that is outside quotes and nesting.

    Args:
        text: Text to split.
        separator: Single separator character ("," ":" or "+").

    Returns:
        Trimmed parts. Blank input yields an empty list.

    Example:
        ```python
        split_top_level("a,'b,c',d", ",")   # ["a", "'b,c'", "d"]
        split_top_level("[1,2],3", ",")     # ["[1,2]", "3"]
        split_top_level("type: 'combo'", ":")  # ["type", "'combo'"]
        ```
    """
    if not text.strip():
        return []

    parts: list[str] = []
    start = 0
    parens = brackets = braces = 0
    in_quotes = False

    i = 0
    while i < len(text):
        char = text[i]
        if in_quotes:
            if char == "\\":
                i += 1
            elif char == "'":
                in_quotes = False
        elif char == "'":
            in_quotes = True
        elif char == "(":
            parens += 1
        elif char == ")":
            parens -= 1
        elif char == "[":
            brackets += 1
        elif char == "]":
            brackets -= 1
        elif char == "{":
            braces += 1
        elif char == "}":
            braces -= 1
        elif char == separator and parens == 0 and brackets == 0 and braces == 0:
            parts.append(text[start:i])
            start = i + 1
        i += 1

    parts.append(text[start:])
    return [part.strip() for part in parts]


def find_closing_paren(text: str, start: int) -> int:
    """Find the ")" closing a "(" that ends just before start.

    Quotes and escapes are respected the same way as split_top_level().

    Returns:
        Index of the closing parenthesis, or -1 when the block is
            unterminated.
    """
    balance = 1
    in_quotes = False
    i = start
    while i < len(text):
        char = text[i]
        if in_quotes:
            if char == "\\":
                i += 1
            elif char == "'":
                in_quotes = False
        elif char == "'":
            in_quotes = True
        elif char == "(":
            balance += 1
        elif char == ")":
            balance -= 1
            if balance == 0:
                return i
        i += 1
    return -1


def strip_line_comment(line: str, *, quote_aware: bool = False) -> str:
    """Remove a "#" comment from a single line.

    With quote_aware=False everything from the first "#" is dropped, even
    inside a string. With quote_aware=True a "#" inside a quoted string is
    kept.
    """
    if not quote_aware:
        index = line.find("#")
        return line if index == -1 else line[:index]

    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if in_quotes:
            if char == "\\":
                i += 1
            elif char == "'":
                in_quotes = False
        elif char == "'":
            in_quotes = True
        elif char == "#":
            return line[:i]
        i += 1
    return line
