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

"""Persistence for wrapview.

- PackageStore: SQLite packages/versions tables
- MarkerStore: JSON key-value file holding the last synced manifest hash
"""

from .database import PackageRecord, PackageStore, VersionRecord
from .markers import RELEASES_HASH_KEY, MarkerStore

__all__ = [
    "RELEASES_HASH_KEY",
    "MarkerStore",
    "PackageRecord",
    "PackageStore",
    "VersionRecord",
]
