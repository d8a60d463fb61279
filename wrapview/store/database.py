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

"""SQLite persistence for packages and package versions.

Two tables back the metadata cache:

- packages: one row per package with the provided names from the release
  manifest, the latest version, cached upstream metadata and the
  updated_at staleness timestamp (NULL until metadata was first fetched).
- versions: one row per package version with the release descriptor data,
  filled lazily (source_url stays NULL until the .wrap file was fetched).

Name lists are stored as JSON text. Rows are returned as frozen
PackageRecord / VersionRecord dataclasses.

Concurrency:
    One connection is shared between threads and guarded by a lock. Writes
    are keyed by package name (and version) and last writer wins.

Example:
    ```python
    from wrapview.store import PackageStore

    with PackageStore("wrapdb.sqlite") as store:
        store.initialize()
        store.insert_packages([("zlib", ["zlib"], [], "1.3.1-1")])
        store.insert_versions([("zlib", "1.3.1-1")])
        print(store.get_package("zlib"))
    ```
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import json
from pathlib import Path
import sqlite3
import threading
from typing import Any

from wrapview.exceptions import StoreError
from wrapview.logging import Logger, get_global_logger
from wrapview.results import PackageMetadata
from wrapview.wrapdb import ReleaseDescriptor

SCHEMA = """
CREATE TABLE IF NOT EXISTS packages (
    name TEXT PRIMARY KEY,
    dependency_names TEXT NOT NULL DEFAULT '[]',
    program_names TEXT NOT NULL DEFAULT '[]',
    latest_version TEXT NOT NULL,
    description TEXT,
    homepage TEXT,
    license TEXT,
    repo_type TEXT,
    repo_owner TEXT,
    repo_name TEXT,
    latest_upstream_version TEXT,
    is_outdated INTEGER,
    updated_at INTEGER
);
CREATE TABLE IF NOT EXISTS versions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    package_name TEXT NOT NULL,
    version TEXT NOT NULL,
    source_url TEXT,
    has_patch_url INTEGER,
    dependency_names TEXT NOT NULL DEFAULT '[]',
    program_names TEXT NOT NULL DEFAULT '[]',
    UNIQUE (package_name, version)
);
"""


@dataclass(frozen=True)
class PackageRecord:
    """A packages row.

    Attributes:
        name: Package name.
        dependency_names: Provided dependency names (from the manifest).
        program_names: Provided program names (from the manifest).
        latest_version: Newest WrapDB version ("1.3.1-1").
        description: Upstream project description.
        homepage: Upstream homepage.
        license: Upstream license identifier.
        repo_type: Provider flavor ("github", "gitlab", "gitlab-gnome", ...).
        repo_owner: Repository owner or group path.
        repo_name: Repository name.
        latest_upstream_version: Newest matching upstream tag.
        is_outdated: True/False when known, None when undetermined.
        updated_at: Unix time of the last metadata refresh, None if never.
    """

    name: str
    dependency_names: tuple[str, ...]
    program_names: tuple[str, ...]
    latest_version: str
    description: str | None = None
    homepage: str | None = None
    license: str | None = None
    repo_type: str | None = None
    repo_owner: str | None = None
    repo_name: str | None = None
    latest_upstream_version: str | None = None
    is_outdated: bool | None = None
    updated_at: int | None = None


@dataclass(frozen=True)
class VersionRecord:
    """A versions row.

    Attributes:
        id: Row id.
        package_name: Owning package.
        version: WrapDB version.
        source_url: Upstream source URL, None until the .wrap was fetched.
        has_patch_url: Whether the wrap ships a patch, None until fetched.
        dependency_names: Dependencies provided by this version.
        program_names: Programs provided by this version.
    """

    id: int
    package_name: str
    version: str
    source_url: str | None = None
    has_patch_url: bool | None = None
    dependency_names: tuple[str, ...] = ()
    program_names: tuple[str, ...] = ()


def _names(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return ()
    return tuple(v for v in value if isinstance(v, str)) if isinstance(value, list) else ()


def _opt_bool(value: int | None) -> bool | None:
    return None if value is None else bool(value)


def _to_db_bool(value: bool | None) -> int | None:
    return None if value is None else int(value)


def _package_from_row(row: sqlite3.Row) -> PackageRecord:
    return PackageRecord(
        name=row["name"],
        dependency_names=_names(row["dependency_names"]),
        program_names=_names(row["program_names"]),
        latest_version=row["latest_version"],
        description=row["description"],
        homepage=row["homepage"],
        license=row["license"],
        repo_type=row["repo_type"],
        repo_owner=row["repo_owner"],
        repo_name=row["repo_name"],
        latest_upstream_version=row["latest_upstream_version"],
        is_outdated=_opt_bool(row["is_outdated"]),
        updated_at=row["updated_at"],
    )


def _version_from_row(row: sqlite3.Row) -> VersionRecord:
    return VersionRecord(
        id=row["id"],
        package_name=row["package_name"],
        version=row["version"],
        source_url=row["source_url"],
        has_patch_url=_opt_bool(row["has_patch_url"]),
        dependency_names=_names(row["dependency_names"]),
        program_names=_names(row["program_names"]),
    )


class PackageStore:
    """SQLite-backed package and version store.

    Attributes:
        path: Database path (":memory:" for an in-memory database).
    """

    def __init__(self, path: Path | str, *, logger: Logger | None = None):
        """Open (or create) the database.

        Args:
            path: Database file path or ":memory:".
            logger: Optional logger. Defaults to the global logger.

        Raises:
            StoreError: If the database cannot be opened.

        """
        self.path = str(path)
        self.logger = logger or get_global_logger()
        self._lock = threading.Lock()
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
        except sqlite3.Error as err:
            raise StoreError(f"Cannot open database {self.path}: {err}") from err
        self._conn.row_factory = sqlite3.Row

    def __enter__(self) -> PackageStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                with self._conn:
                    return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as err:
                raise StoreError(f"Database error: {err}") from err

    def _executemany(self, sql: str, rows: Iterable[Sequence[Any]]) -> int:
        with self._lock:
            try:
                with self._conn:
                    cursor = self._conn.executemany(sql, rows)
                    return cursor.rowcount
            except sqlite3.Error as err:
                raise StoreError(f"Database error: {err}") from err

    def initialize(self) -> None:
        """Create the tables if they don't exist."""
        with self._lock:
            try:
                self._conn.executescript(SCHEMA)
            except sqlite3.Error as err:
                raise StoreError(f"Cannot initialize database: {err}") from err
        self.logger.debug("STORE", f"Initialized schema in {self.path}")

    # -------------------------------
    # Reads
    # -------------------------------

    def get_package(self, name: str) -> PackageRecord | None:
        rows = self._execute("SELECT * FROM packages WHERE name = ?", (name,))
        return _package_from_row(rows[0]) if rows else None

    def get_version(self, package_name: str, version: str) -> VersionRecord | None:
        rows = self._execute(
            "SELECT * FROM versions WHERE package_name = ? AND version = ?",
            (package_name, version),
        )
        return _version_from_row(rows[0]) if rows else None

    def list_versions(self, package_name: str) -> list[VersionRecord]:
        """All stored versions of a package, in insertion order."""
        rows = self._execute(
            "SELECT * FROM versions WHERE package_name = ? ORDER BY id", (package_name,)
        )
        return [_version_from_row(row) for row in rows]

    def list_package_names(self) -> list[str]:
        rows = self._execute("SELECT name FROM packages ORDER BY name")
        return [row["name"] for row in rows]

    def search(self, query: str) -> list[PackageRecord]:
        """Substring search over name, description and provided names."""
        like = f"%{query}%"
        rows = self._execute(
            "SELECT * FROM packages WHERE name LIKE ?1 OR description LIKE ?1 "
            "OR dependency_names LIKE ?1 OR program_names LIKE ?1 ORDER BY name",
            (like,),
        )
        return [_package_from_row(row) for row in rows]

    # -------------------------------
    # Writes
    # -------------------------------

    def insert_packages(
        self, packages: Iterable[tuple[str, Sequence[str], Sequence[str], str]]
    ) -> int:
        """Insert (name, dependency_names, program_names, latest_version) rows.

        Existing packages are left untouched (INSERT OR IGNORE).

        Returns:
            Number of rows actually inserted.
        """
        rows = [
            (name, json.dumps(list(deps)), json.dumps(list(progs)), latest)
            for name, deps, progs, latest in packages
        ]
        return self._executemany(
            "INSERT OR IGNORE INTO packages "
            "(name, dependency_names, program_names, latest_version) VALUES (?, ?, ?, ?)",
            rows,
        )

    def insert_versions(self, versions: Iterable[tuple[str, str]]) -> int:
        """Insert (package_name, version) rows, ignoring existing ones."""
        return self._executemany(
            "INSERT OR IGNORE INTO versions (package_name, version) VALUES (?, ?)",
            list(versions),
        )

    def update_package_metadata(
        self, name: str, metadata: PackageMetadata, updated_at: int
    ) -> None:
        """Replace the cached upstream metadata of a package."""
        repo = metadata.repo
        self._execute(
            "UPDATE packages SET description = ?, homepage = ?, license = ?, "
            "repo_type = ?, repo_owner = ?, repo_name = ?, "
            "latest_upstream_version = ?, is_outdated = ?, updated_at = ? "
            "WHERE name = ?",
            (
                metadata.description,
                metadata.homepage,
                metadata.license,
                repo.type if repo else None,
                repo.owner if repo else None,
                repo.name if repo else None,
                metadata.upstream_version,
                _to_db_bool(metadata.is_outdated),
                updated_at,
                name,
            ),
        )

    def update_version_release(
        self, package_name: str, version: str, descriptor: ReleaseDescriptor
    ) -> None:
        """Store the release descriptor data of a package version."""
        self._execute(
            "UPDATE versions SET source_url = ?, has_patch_url = ?, "
            "dependency_names = ?, program_names = ? "
            "WHERE package_name = ? AND version = ?",
            (
                descriptor.source_url,
                int(descriptor.has_patch_url),
                json.dumps(list(descriptor.dependency_names)),
                json.dumps(list(descriptor.program_names)),
                package_name,
                version,
            ),
        )
