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

"""Core orchestration for wrapview.

This module ties the store, the WrapDB client and the provider adapters
together into the on-demand metadata cache.

Lookup Flow:

- **Versions**: a versions row is created by the bulk sync with only its
    name and version. The first lookup fetches the release descriptor
    (.wrap file) and stores the source URL and provided names.
- **Packages**: package metadata (description, homepage, license,
    upstream version, outdated flag) is fetched on first lookup and again
    whenever it is older than settings.stale_after_seconds. The refresh
    follows the latest version's source URL to its provider and reconciles
    the recorded version against upstream tags.
- **Bulk sync**: the release manifest is imported with INSERT OR IGNORE.
    The manifest's SHA-256 is kept in the marker store, so an unchanged
    manifest is skipped entirely.

Failure Policy:
    Upstream failures during a refresh are logged and the previously
    stored record is returned unchanged. Stale data is preferred over no
    data, and nothing is written when a refresh fails.

Example:
    Programmatic usage:
        ```python
        from wrapview.config import load_settings
        from wrapview.core import get_or_update_package, sync_database
        from wrapview.store import MarkerStore, PackageStore

        settings = load_settings("wrapview.yaml")
        store = PackageStore(settings.database)
        store.initialize()

        result = sync_database(store, MarkerStore(settings.markers), settings=settings)
        print(result.message)

        package = get_or_update_package(store, "zlib", settings=settings)
        if package and package.is_outdated:
            print(f"zlib is behind upstream {package.latest_upstream_version}")
        ```

"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import replace
from functools import cmp_to_key
import time

import requests

from wrapview.config import Settings
from wrapview.exceptions import WrapviewError
from wrapview.http import ResponseCache, make_session
from wrapview.logging import Logger, get_global_logger
from wrapview.metadata import fetch_metadata as default_fetch_metadata
from wrapview.results import PackageMetadata, SyncResult
from wrapview.store import (
    RELEASES_HASH_KEY,
    MarkerStore,
    PackageRecord,
    PackageStore,
    VersionRecord,
)
from wrapview.versioning import compare, strip_wrap_revision
from wrapview.wrapdb import ReleaseDescriptor, ReleaseManifest
from wrapview.wrapdb import fetch_releases as default_fetch_releases
from wrapview.wrapdb import fetch_wrap as default_fetch_wrap

WrapFetcher = Callable[[str, str], ReleaseDescriptor]
MetadataFetcher = Callable[[str, str], PackageMetadata]
ReleasesFetcher = Callable[[], ReleaseManifest]


def _wrap_fetcher(
    settings: Settings, session: requests.Session | None, logger: Logger
) -> WrapFetcher:
    return lambda name, version: default_fetch_wrap(
        name,
        version,
        session,
        base_url=settings.wrapdb_base_url,
        timeout=settings.request_timeout,
        logger=logger,
    )


def _metadata_fetcher(
    settings: Settings,
    session: requests.Session | None,
    cache: ResponseCache | None,
    logger: Logger,
) -> MetadataFetcher:
    return lambda source_url, known_version: default_fetch_metadata(
        source_url,
        known_version,
        settings=settings,
        session=session,
        cache=cache,
        logger=logger,
    )


def is_stale(package: PackageRecord, stale_after: int, now: float) -> bool:
    """True when the package metadata was never fetched or has expired."""
    return package.updated_at is None or now - package.updated_at > stale_after


def get_or_update_version(
    store: PackageStore,
    name: str,
    version: str,
    *,
    settings: Settings | None = None,
    session: requests.Session | None = None,
    fetch_wrap: WrapFetcher | None = None,
    logger: Logger | None = None,
) -> VersionRecord | None:
    """Look up a package version, fetching its .wrap file on first access.

    Args:
        store: Package store.
        name: Package name.
        version: WrapDB version ("1.3.1-1").
        settings: Optional settings. Defaults to Settings().
        session: Optional requests session for the default fetcher.
        fetch_wrap: Optional (name, version) -> ReleaseDescriptor callable.
            Defaults to the WrapDB client.
        logger: Optional logger. Defaults to the global logger.

    Returns:
        The version record, or None when the version is unknown. When the
            descriptor cannot be fetched, the stored record is returned
            without a source URL.

    """
    if logger is None:
        logger = get_global_logger()
    if settings is None:
        settings = Settings()
    if fetch_wrap is None:
        fetch_wrap = _wrap_fetcher(settings, session, logger)

    record = store.get_version(name, version)
    if record is None:
        return None
    if record.source_url is not None:
        return record

    try:
        descriptor = fetch_wrap(name, version)
    except WrapviewError as err:
        logger.verbose(
            "WARNING", f"Failed to fetch .wrap file for {name}@{version}: {err}"
        )
        return record

    store.update_version_release(name, version, descriptor)
    logger.verbose("STORE", f"Stored release descriptor for {name}@{version}")
    return replace(
        record,
        source_url=descriptor.source_url,
        has_patch_url=descriptor.has_patch_url,
        dependency_names=tuple(descriptor.dependency_names),
        program_names=tuple(descriptor.program_names),
    )


def get_or_update_package(
    store: PackageStore,
    name: str,
    *,
    settings: Settings | None = None,
    session: requests.Session | None = None,
    cache: ResponseCache | None = None,
    now: float | None = None,
    package: PackageRecord | None = None,
    fetch_wrap: WrapFetcher | None = None,
    fetch_metadata: MetadataFetcher | None = None,
    logger: Logger | None = None,
) -> PackageRecord | None:
    """Look up a package, refreshing its upstream metadata when stale.

    Args:
        store: Package store.
        name: Package name.
        settings: Optional settings. Defaults to Settings().
        session: Optional requests session for the default fetchers.
        cache: Optional response cache for provider calls.
        now: Current Unix time. Defaults to time.time().
        package: Already loaded record (skips the initial lookup).
        fetch_wrap: Optional .wrap fetcher (see get_or_update_version).
        fetch_metadata: Optional (source_url, known_version) ->
            PackageMetadata callable. Defaults to wrapview.metadata.
        logger: Optional logger. Defaults to the global logger.

    Returns:
        The (possibly refreshed) record, or None when the package is
            unknown. A failed refresh returns the stored record unchanged.

    """
    if logger is None:
        logger = get_global_logger()
    if settings is None:
        settings = Settings()
    if now is None:
        now = time.time()
    if fetch_metadata is None:
        fetch_metadata = _metadata_fetcher(settings, session, cache, logger)

    if package is None:
        package = store.get_package(name)
    if package is None:
        return None

    if not is_stale(package, settings.stale_after_seconds, now):
        logger.debug("METADATA", f"Metadata for {name} is fresh")
        return package

    logger.verbose("METADATA", f"Fetching metadata for {name}")
    try:
        latest = get_or_update_version(
            store,
            name,
            package.latest_version,
            settings=settings,
            session=session,
            fetch_wrap=fetch_wrap,
            logger=logger,
        )
        if latest is None:
            logger.verbose(
                "WARNING",
                f"Latest version {package.latest_version} of {name} not found in store",
            )
            return package
        if latest.source_url is None:
            logger.verbose(
                "WARNING", f"Latest version {latest.version} of {name} has no source_url"
            )
            return package

        metadata = fetch_metadata(
            latest.source_url, strip_wrap_revision(package.latest_version)
        )
        updated_at = int(now)
        store.update_package_metadata(name, metadata, updated_at)
    except WrapviewError as err:
        logger.verbose("WARNING", f"Failed to fetch metadata for {name}: {err}")
        return package

    repo = metadata.repo
    return replace(
        package,
        description=metadata.description,
        homepage=metadata.homepage,
        license=metadata.license,
        repo_type=repo.type if repo else None,
        repo_owner=repo.owner if repo else None,
        repo_name=repo.name if repo else None,
        latest_upstream_version=metadata.upstream_version,
        is_outdated=metadata.is_outdated,
        updated_at=updated_at,
    )


def get_versions_for_package(store: PackageStore, name: str) -> list[VersionRecord]:
    """All stored versions of a package, newest first."""
    versions = store.list_versions(name)
    return sorted(
        versions, key=cmp_to_key(lambda a, b: compare(a.version, b.version)), reverse=True
    )


def sync_database(
    store: PackageStore,
    markers: MarkerStore,
    *,
    settings: Settings | None = None,
    session: requests.Session | None = None,
    fetch_releases: ReleasesFetcher | None = None,
    logger: Logger | None = None,
) -> SyncResult:
    """Import the WrapDB release manifest into the store.

    Args:
        store: Package store (tables must exist).
        markers: Marker store holding the last imported manifest hash.
        settings: Optional settings. Defaults to Settings().
        session: Optional requests session for the default fetcher.
        fetch_releases: Optional manifest fetcher. Defaults to the WrapDB
            client.
        logger: Optional logger. Defaults to the global logger.

    Returns:
        SyncResult. Failures are reported with success=False rather than
            raised.

    """
    if logger is None:
        logger = get_global_logger()
    if settings is None:
        settings = Settings()
    if fetch_releases is None:

        def fetch_releases() -> ReleaseManifest:
            active = (
                nullcontext(session)
                if session is not None
                else make_session(settings.http_retries)
            )
            with active as s:
                return default_fetch_releases(
                    s,
                    base_url=settings.wrapdb_base_url,
                    timeout=settings.request_timeout,
                    logger=logger,
                )

    try:
        logger.step(1, 3, "Fetching release manifest...")
        manifest = fetch_releases()

        if manifest.hash == markers.get(RELEASES_HASH_KEY):
            logger.verbose("SYNC", "releases.json has not changed, skipping sync")
            return SyncResult(
                success=True,
                message="Skipped. releases.json has not changed.",
                skipped=True,
                package_count=len(manifest.packages),
            )

        logger.step(2, 3, "Importing packages and versions...")
        package_rows = []
        version_rows = []
        for name, entry in manifest.packages.items():
            if not entry.versions:
                logger.verbose("SYNC", f"Skipping {name}: no versions found")
                continue
            package_rows.append(
                (name, entry.dependency_names, entry.program_names, entry.versions[0])
            )
            version_rows.extend((name, version) for version in entry.versions)

        logger.verbose("SYNC", f"Prepared {len(package_rows)} package(s) for insertion")
        logger.verbose("SYNC", f"Prepared {len(version_rows)} version(s) for insertion")
        store.insert_packages(package_rows)
        store.insert_versions(version_rows)

        logger.step(3, 3, "Recording manifest hash...")
        markers.put(RELEASES_HASH_KEY, manifest.hash)
    except WrapviewError as err:
        logger.verbose("WARNING", f"Database sync failed: {err}")
        return SyncResult(success=False, message="Database sync failed.", error=str(err))

    package_count = len(manifest.packages)
    return SyncResult(
        success=True,
        message=(
            f"Sync complete. Processed {package_count} packages "
            f"and {len(version_rows)} versions."
        ),
        package_count=package_count,
        version_count=len(version_rows),
    )


def refresh_packages(
    store: PackageStore,
    names: Iterable[str],
    *,
    settings: Settings | None = None,
    cache: ResponseCache | None = None,
    max_workers: int | None = None,
    now: float | None = None,
    fetch_wrap: WrapFetcher | None = None,
    fetch_metadata: MetadataFetcher | None = None,
    logger: Logger | None = None,
) -> dict[str, PackageRecord | None]:
    """Refresh many packages concurrently.

    Each package is reconciled independently by get_or_update_package().
    Every worker call gets its own retrying session from make_session(),
    since requests sessions are not safe to share between threads.

    Args:
        store: Package store.
        names: Package names.
        settings: Optional settings. Defaults to Settings().
        cache: Optional response cache shared by all workers.
        max_workers: Thread pool size. Defaults to settings.refresh_workers.
        now: Current Unix time. Defaults to time.time().
        fetch_wrap: Optional .wrap fetcher.
        fetch_metadata: Optional metadata fetcher.
        logger: Optional logger. Defaults to the global logger.

    Returns:
        Package name -> record (None for unknown packages).

    """
    if logger is None:
        logger = get_global_logger()
    if settings is None:
        settings = Settings()
    if now is None:
        now = time.time()

    unique = list(dict.fromkeys(names))
    logger.verbose("METADATA", f"Refreshing {len(unique)} package(s)")

    def refresh(name: str) -> PackageRecord | None:
        with make_session(settings.http_retries) as session:
            return get_or_update_package(
                store,
                name,
                settings=settings,
                session=session,
                cache=cache,
                now=now,
                fetch_wrap=fetch_wrap,
                fetch_metadata=fetch_metadata,
                logger=logger,
            )

    with ThreadPoolExecutor(max_workers=max_workers or settings.refresh_workers) as pool:
        return dict(zip(unique, pool.map(refresh, unique)))
