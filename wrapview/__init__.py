"""
wrapview - WrapDB package metadata library

A Python library backing a browsing front-end for the Meson WrapDB package
registry. For every package it keeps accurate dependency and program names,
detects whether the registered release is behind its upstream repository,
and previews the package's build options.

wrapview provides:
  - Bulk import of the WrapDB release manifest into SQLite
  - On-demand .wrap descriptor fetching per package version
  - Upstream tag reconciliation for GitHub and GitLab hosted projects
  - A staleness policy for cached upstream metadata
  - A parser for Meson option() declarations

Package Structure
-----------------
core : module
    Metadata cache orchestration (lookups, refresh, bulk sync).
metadata : module
    Source URL classification and provider invocation.
config : package
    YAML settings loading with .env and ${VAR} expansion.
versioning : package
    Version string comparison.
upstream : package
    Tag matching against paginated upstream tag listings.
providers : package
    GitHub and GitLab adapters behind a provider registry.
options : package
    Meson build option parsing.
wrapdb : package
    WrapDB release manifest and .wrap descriptor client.
store : package
    SQLite package store and JSON marker file.

Public API
----------
    from wrapview.core import get_or_update_package, sync_database
    from wrapview.config import load_settings
    from wrapview.upstream import find_upstream_version
    from wrapview.options import parse_options, parse_value
    from wrapview.versioning import compare

For more details, see the individual module docstrings.

Project Information
-------------------
License: Apache-2.0
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"
__description__ = "WrapDB package metadata, upstream reconciliation and option parsing"

# Re-export commonly used functions for convenience
from wrapview.config import Settings, load_settings
from wrapview.core import (
    get_or_update_package,
    get_or_update_version,
    get_versions_for_package,
    refresh_packages,
    sync_database,
)
from wrapview.options import MesonOption, parse_options, parse_value, split_top_level
from wrapview.upstream import TagPage, UpstreamVersion, find_upstream_version
from wrapview.versioning import compare

__all__ = [
    "__version__",
    "__license__",
    "__description__",
    "MesonOption",
    "Settings",
    "TagPage",
    "UpstreamVersion",
    "compare",
    "find_upstream_version",
    "get_or_update_package",
    "get_or_update_version",
    "get_versions_for_package",
    "load_settings",
    "parse_options",
    "parse_value",
    "refresh_packages",
    "split_top_level",
    "sync_database",
]
