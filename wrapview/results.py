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

"""Public API return types for wrapview.

This module defines dataclasses for return values from public API functions
that cross module boundaries: upstream metadata produced by the provider
adapters and the outcome of a bulk manifest sync.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Note:
    Domain types that belong to a single subsystem (TagPage, SourceIdentity,
    PackageRecord, MesonOption) stay co-located with their related logic.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RepoInfo:
    """Upstream repository coordinates.

    Attributes:
        type: Provider variant name ("github", "gitlab", "gitlab-gnome", ...).
        owner: Repository owner or group path.
        name: Repository name.
    """

    type: str
    owner: str
    name: str


@dataclass(frozen=True)
class PackageMetadata:
    """Upstream metadata for a package.

    Every field is optional: an unknown source host yields an empty record,
    which is a valid terminal state.

    Attributes:
        description: Project description reported by the provider.
        homepage: Project homepage URL.
        license: License identifier (SPDX id on GitHub, license key on GitLab).
        repo: Repository coordinates, None for unknown hosts.
        upstream_version: Newest upstream tag following the recorded
            version's naming scheme.
        is_outdated: True when upstream_version is newer than the recorded
            version, None when no conclusion could be drawn.
    """

    description: str | None = None
    homepage: str | None = None
    license: str | None = None
    repo: RepoInfo | None = None
    upstream_version: str | None = None
    is_outdated: bool | None = None

    @property
    def is_empty(self) -> bool:
        return self == PackageMetadata()


@dataclass(frozen=True)
class SyncResult:
    """Result from synchronizing the store against the release manifest.

    Attributes:
        success: False when the sync failed.
        message: Human-readable summary.
        skipped: True when the manifest hash was unchanged.
        package_count: Packages present in the manifest.
        version_count: Versions prepared for insertion.
        error: Error text when success is False.
    """

    success: bool
    message: str
    skipped: bool = False
    package_count: int = 0
    version_count: int = 0
    error: str | None = None
