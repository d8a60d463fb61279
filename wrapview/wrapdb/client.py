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

"""WrapDB v2 API client.

Two documents are read from WrapDB:

- The release manifest (releases.json): every package with its versions
  (newest first) and the dependency/program names it provides.
- The release descriptor (<name>.wrap) of one package version: an INI file
  naming the upstream source archive and what the wrap provides.

Example .wrap file::

    [wrap-file]
    directory = zlib-1.3.1
    source_url = http://zlib.net/fossils/zlib-1.3.1.tar.gz
    source_filename = zlib-1.3.1.tar.gz
    patch_directory = zlib

    [provide]
    zlib = zlib_dep

Example:
    Fetch the manifest and one descriptor:
        ```python
        from wrapview.wrapdb import fetch_releases, fetch_wrap

        manifest = fetch_releases()
        versions = manifest.packages["zlib"].versions
        descriptor = fetch_wrap("zlib", versions[0])
        print(descriptor.source_url)
        ```
"""

from __future__ import annotations

import configparser
from dataclasses import dataclass, field
import hashlib
import json

import requests

from wrapview.exceptions import ResponseParseError
from wrapview.http import DEFAULT_TIMEOUT, ResponseCache, http_get
from wrapview.logging import Logger, get_global_logger

DEFAULT_BASE_URL = "https://wrapdb.mesonbuild.com/v2"


@dataclass(frozen=True)
class ManifestEntry:
    """One package in the release manifest.

    Attributes:
        versions: Known versions, newest first ("1.3.1-1", ...).
        dependency_names: Dependency names provided by the package.
        program_names: Program names provided by the package.
    """

    versions: tuple[str, ...] = ()
    dependency_names: tuple[str, ...] = ()
    program_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReleaseManifest:
    """The parsed release manifest.

    Attributes:
        packages: Package name -> ManifestEntry.
        hash: SHA-256 hex digest of the raw manifest body.
    """

    packages: dict[str, ManifestEntry] = field(default_factory=dict)
    hash: str = ""


@dataclass(frozen=True)
class ReleaseDescriptor:
    """The parsed .wrap file of one package version.

    Attributes:
        source_url: Upstream source archive (or git) URL, None if absent.
        dependency_names: Dependencies provided by this version.
        program_names: Programs provided by this version.
        has_patch_url: True when the wrap ships a patch (patch_url or
            patch_directory).
    """

    source_url: str | None = None
    dependency_names: tuple[str, ...] = ()
    program_names: tuple[str, ...] = ()
    has_patch_url: bool = False


def _str_list(value: object, context: str, body: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ResponseParseError(f"Expected a list of strings for {context}", body=body)
    return tuple(value)


def parse_releases(text: str) -> ReleaseManifest:
    """Parse a releases.json body.

    Raises:
        ResponseParseError: If the body is not a JSON object of packages.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise ResponseParseError(f"Invalid releases.json: {err}", body=text) from err
    if not isinstance(data, dict):
        raise ResponseParseError("releases.json must be a JSON object", body=text)

    packages: dict[str, ManifestEntry] = {}
    for name, entry in data.items():
        if not isinstance(entry, dict):
            raise ResponseParseError(f"Invalid manifest entry for {name}", body=text)
        packages[name] = ManifestEntry(
            versions=_str_list(entry.get("versions"), f"{name}.versions", text),
            dependency_names=_str_list(
                entry.get("dependency_names"), f"{name}.dependency_names", text
            ),
            program_names=_str_list(
                entry.get("program_names"), f"{name}.program_names", text
            ),
        )

    return ReleaseManifest(
        packages=packages,
        hash=hashlib.sha256(text.encode("utf-8")).hexdigest(),
    )


def _comma_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_wrap_file(text: str) -> ReleaseDescriptor:
    """Parse a .wrap release descriptor.

    [wrap-file] supplies source_url; patch_url or patch_directory mark a
    patched wrap. A [wrap-git] url is used when there is no [wrap-file]
    section. In [provide], dependency_names and program_names are comma
    lists and every other key ("dep_name = variable") is a dependency name.

    Raises:
        ResponseParseError: If the text is not a valid INI document.

    Example:
        ```python
        parse_wrap_file("[wrap-file]\\nsource_url = https://x/y.tar.gz\\n")
        # ReleaseDescriptor(source_url="https://x/y.tar.gz", ...)
        ```
    """
    parser = configparser.ConfigParser(interpolation=None)
    # Keep key case ("glib-2.0", "GL")
    parser.optionxform = str  # type: ignore[assignment, method-assign]
    try:
        parser.read_string(text)
    except configparser.Error as err:
        raise ResponseParseError(f"Invalid .wrap file: {err}", body=text) from err

    source_url: str | None = None
    has_patch_url = False
    if parser.has_section("wrap-file"):
        section = parser["wrap-file"]
        source_url = section.get("source_url") or None
        has_patch_url = bool(section.get("patch_url") or section.get("patch_directory"))
    elif parser.has_section("wrap-git"):
        section = parser["wrap-git"]
        source_url = section.get("url") or None
        has_patch_url = bool(section.get("patch_url") or section.get("patch_directory"))

    dependency_names: list[str] = []
    program_names: list[str] = []
    if parser.has_section("provide"):
        for key, value in parser["provide"].items():
            if key == "dependency_names":
                dependency_names.extend(_comma_list(value))
            elif key == "program_names":
                program_names.extend(_comma_list(value))
            else:
                dependency_names.append(key)

    return ReleaseDescriptor(
        source_url=source_url,
        dependency_names=tuple(dependency_names),
        program_names=tuple(program_names),
        has_patch_url=has_patch_url,
    )


def wrap_url(name: str, version: str, *, base_url: str = DEFAULT_BASE_URL) -> str:
    """URL of the .wrap file of a package version."""
    return f"{base_url}/{name}_{version}/{name}.wrap"


def fetch_releases(
    session: requests.Session | None = None,
    *,
    base_url: str = DEFAULT_BASE_URL,
    cache: ResponseCache | None = None,
    ttl: int = 0,
    timeout: int = DEFAULT_TIMEOUT,
    logger: Logger | None = None,
) -> ReleaseManifest:
    """Fetch and parse the WrapDB release manifest.

    Args:
        session: Optional requests session.
        base_url: WrapDB v2 base URL.
        cache: Optional response cache.
        ttl: Cache lifetime in seconds (0 disables caching).
        timeout: Request timeout in seconds.
        logger: Optional logger. Defaults to the global logger.

    Returns:
        The manifest and the SHA-256 of its body.

    Raises:
        NetworkError: If the request fails.
        ResponseParseError: If the body is not a valid manifest.

    """
    if logger is None:
        logger = get_global_logger()

    url = f"{base_url}/releases.json"
    logger.verbose("WRAPDB", f"Fetching release manifest: {url}")
    response = http_get(
        url,
        session=session,
        timeout=timeout,
        cache=cache,
        ttl=ttl,
        context="WrapDB releases request",
        logger=logger,
    )
    manifest = parse_releases(response.text)
    logger.verbose("WRAPDB", f"Manifest lists {len(manifest.packages)} package(s)")
    return manifest


def fetch_wrap(
    name: str,
    version: str,
    session: requests.Session | None = None,
    *,
    base_url: str = DEFAULT_BASE_URL,
    timeout: int = DEFAULT_TIMEOUT,
    logger: Logger | None = None,
) -> ReleaseDescriptor:
    """Fetch and parse the .wrap file of one package version.

    Raises:
        NetworkError: If the request fails (404 for unknown versions).
        ResponseParseError: If the body is not a valid .wrap file.
    """
    if logger is None:
        logger = get_global_logger()

    url = wrap_url(name, version, base_url=base_url)
    logger.verbose("WRAPDB", f"Fetching .wrap file for {name}@{version}")
    response = http_get(
        url,
        session=session,
        timeout=timeout,
        context=f"WrapDB .wrap request for {name}@{version}",
        logger=logger,
    )
    return parse_wrap_file(response.text)
