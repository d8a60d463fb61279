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

"""WrapDB registry access for wrapview."""

from .client import (
    DEFAULT_BASE_URL,
    ManifestEntry,
    ReleaseDescriptor,
    ReleaseManifest,
    fetch_releases,
    fetch_wrap,
    parse_releases,
    parse_wrap_file,
    wrap_url,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "ManifestEntry",
    "ReleaseDescriptor",
    "ReleaseManifest",
    "fetch_releases",
    "fetch_wrap",
    "parse_releases",
    "parse_wrap_file",
    "wrap_url",
]
