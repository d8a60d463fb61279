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

"""Upstream version reconciliation for wrapview.

Public API:

- find_upstream_version: Find the newest same-scheme upstream tag
- normalize_tag: Canonical dotted form of a tag name
- TagPage: One page of an upstream tag listing
- UpstreamVersion: Reconciliation outcome
"""

from .matcher import (
    DEFAULT_MAX_PAGES,
    TagPage,
    TagPageFetcher,
    UpstreamVersion,
    find_upstream_version,
    is_prerelease_tag,
    normalize_tag,
)

__all__ = [
    "DEFAULT_MAX_PAGES",
    "TagPage",
    "TagPageFetcher",
    "UpstreamVersion",
    "find_upstream_version",
    "is_prerelease_tag",
    "normalize_tag",
]
