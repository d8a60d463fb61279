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

"""Source provider adapters for wrapview.

This package translates a release's source archive URL into an upstream
project identity and the tag the release was built from, then queries the
hosting provider for project details and a paginated tag listing that is
fed into the tag matcher.

Available Providers:
    github : GitHubProvider
        github.com and codeload.github.com archives and release assets.
        Detail and tag calls against api.github.com.
    gitlab : GitLabProvider
        gitlab.com, gitlab.gnome.org and gitlab.freedesktop.org archives,
        plus download.gnome.org release tarballs (mapped to
        gitlab.gnome.org/GNOME/<name>).

Example:
    Fetch metadata for a registered release:

        from wrapview.providers import classify_source_url, get_provider

        url = "https://github.com/fmtlib/fmt/archive/refs/tags/11.0.2.tar.gz"
        kind = classify_source_url(url)
        if kind is not None:
            provider = get_provider(kind, token=None)
            metadata = provider.fetch_metadata(provider.identify(url), "11.0.2")
            print(metadata.upstream_version, metadata.is_outdated)

"""

# Import provider modules to trigger self-registration
from . import (
    github,  # noqa: F401
    gitlab,  # noqa: F401
)
from .base import (
    ProviderKind,
    SourceIdentity,
    SourceProvider,
    classify_source_url,
    get_provider,
    register_provider,
)
from .github import GitHubProvider
from .gitlab import GitLabProvider

__all__ = [
    "GitHubProvider",
    "GitLabProvider",
    "ProviderKind",
    "SourceIdentity",
    "SourceProvider",
    "classify_source_url",
    "get_provider",
    "register_provider",
]
