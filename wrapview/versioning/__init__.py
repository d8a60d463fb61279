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

"""Version comparison for wrapview.

Public API:

- compare: Compare two version strings, returning -1, 0, or 1.
- is_newer: Check if a remote version is newer than the current version.
- sort_versions: Order version strings, newest first by default.
- strip_wrap_revision: Drop the WrapDB "-<n>" packaging revision.

Example:
    Basic version comparison:

        >>> from wrapview.versioning import compare, sort_versions
        >>> compare("1.2.10", "1.2.9")
        1
        >>> sort_versions(["1.2.9-1", "1.2.10-1", "1.2.10-2"])
        ['1.2.10-2', '1.2.10-1', '1.2.9-1']
"""

from .keys import compare, is_newer, sort_versions, strip_wrap_revision

__all__ = ["compare", "is_newer", "sort_versions", "strip_wrap_revision"]
