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

"""Core version comparison utilities for wrapview.

This module is format-agnostic: it does NOT touch the network or the store.
It only orders version strings the way the registry browser needs them.

The comparison is deliberately simple. Each operand is split on ".", every
segment is left-padded with "0" to the widest segment found in either
operand, and the concatenated strings are compared lexicographically. This
orders numeric segments of different magnitude correctly ("1.2.9" < "1.2.10")
without attempting semver precedence rules for prerelease or build suffixes.
Non-numeric segments are compared as plain text after padding.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import cmp_to_key
import re

_WRAP_REVISION = re.compile(r"-\d+$")


def _padded_key(version: str, width: int) -> str:
    return "".join(part.rjust(width, "0") for part in version.split("."))


def compare(a: str, b: str) -> int:
    """Compare two dot-delimited version strings.

    Args:
        a: First version string.
        b: Second version string.

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b.

    Example:
        Numeric segments compare by magnitude:
            ```python
            compare("1.2.9", "1.2.10")    # -1
            compare("1.2.10-1", "1.2.9-1")  # 1
            ```

    Note:
        A segment is only ordered numerically against segments of at most
        the same width after padding. "1.2.3" and "1.2.3.0" are not equal.
    """
    width = max(len(part) for part in a.split(".") + b.split("."))
    key_a = _padded_key(a, width)
    key_b = _padded_key(b, width)
    return (key_a > key_b) - (key_a < key_b)


def is_newer(remote: str, current: str | None) -> bool:
    """Decide if 'remote' should be considered newer than 'current'.

    Returns True iff remote > current. A missing current version means
    anything is newer.
    """
    if current is None:
        return True
    return compare(remote, current) > 0


def sort_versions(versions: Iterable[str], *, newest_first: bool = True) -> list[str]:
    """Return versions ordered with compare().

    Args:
        versions: Version strings to sort.
        newest_first: If True (default), the newest version comes first.

    Returns:
        A new sorted list.
    """
    return sorted(versions, key=cmp_to_key(compare), reverse=newest_first)


def strip_wrap_revision(version: str) -> str:
    """Drop the WrapDB packaging revision from a release version.

    WrapDB versions carry a trailing "-<n>" packaging revision that has no
    upstream counterpart ("8.16.0-1" -> "8.16.0").
    """
    return _WRAP_REVISION.sub("", version)
