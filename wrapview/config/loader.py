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

"""Settings loader for wrapview.

Settings are resolved in three layers, last wins:

1. **Built-in defaults** (DEFAULTS below)
2. **Settings file** (YAML, optional)
3. **Overrides** (mapping passed by the host, optional)

Merge Behavior
--------------
  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten (strings, numbers, booleans)

Environment Expansion
---------------------
A ``.env`` file in the working directory is loaded first (python-dotenv).
Any string value of the exact form ``"${VAR}"`` is then replaced with the
value of the environment variable VAR. Unset variables become None and a
warning is logged, so a missing token degrades to anonymous API access.

Example settings file::

    database: /var/lib/wrapview/wrapdb.sqlite
    markers: /var/lib/wrapview/markers.json
    stale_after_seconds: 43200
    http_retries: 5
    github:
      token: "${GITHUB_TOKEN}"
    cache:
      tags_ttl: 600

Error Handling
--------------
- ConfigError: missing settings file, YAML parse errors, non-mapping top
  level, or values of the wrong type
- All errors are chained with "from err" for better debugging
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
import yaml

from wrapview.exceptions import ConfigError
from wrapview.logging import Logger, get_global_logger

DEFAULTS: dict[str, Any] = {
    "database": "wrapview.sqlite",
    "markers": "wrapview-markers.json",
    "stale_after_seconds": 86400,
    "max_tag_pages": 50,
    "request_timeout": 30,
    "http_retries": 3,
    "wrapdb_base_url": "https://wrapdb.mesonbuild.com/v2",
    "github": {"token": None},
    "gitlab": {"token": None},
    "cache": {"detail_ttl": 86400, "tags_ttl": 300},
    "refresh_workers": 8,
}


@dataclass(frozen=True)
class Settings:
    """Resolved wrapview settings.

    Attributes:
        database: Path of the SQLite package store.
        markers: Path of the JSON marker file (last synced manifest hash).
        stale_after_seconds: Age after which package metadata is refreshed.
        max_tag_pages: Tag page cap for upstream reconciliation.
        request_timeout: HTTP timeout in seconds.
        http_retries: Retries for transient HTTP failures (sessions built
            by wrapview only).
        wrapdb_base_url: Base URL of the WrapDB v2 API.
        github_token: Optional GitHub token.
        gitlab_token: Optional GitLab token.
        detail_ttl: Cache lifetime of provider detail responses.
        tags_ttl: Cache lifetime of provider tag pages.
        refresh_workers: Thread pool size for bulk refreshes.
    """

    database: Path = Path(DEFAULTS["database"])
    markers: Path = Path(DEFAULTS["markers"])
    stale_after_seconds: int = 86400
    max_tag_pages: int = 50
    request_timeout: int = 30
    http_retries: int = 3
    wrapdb_base_url: str = "https://wrapdb.mesonbuild.com/v2"
    github_token: str | None = None
    gitlab_token: str | None = None
    detail_ttl: int = 86400
    tags_ttl: int = 300
    refresh_workers: int = 8


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """Load a YAML file and return the parsed Python object.

    Raises:
        ConfigError: When the file does not exist or is not valid YAML.
    """
    if not p.exists():
        raise ConfigError(f"settings file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err


def _deep_merge_dicts(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, Mapping):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


def _expand_env(value: Any, logger: Logger) -> Any:
    """Expand "${VAR}" strings recursively from the environment."""
    if isinstance(value, dict):
        return {k: _expand_env(v, logger) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v, logger) for v in value]
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_var = value[2:-1]
        expanded = os.environ.get(env_var)
        if not expanded:
            logger.verbose("CONFIG", f"Warning: Environment variable {env_var} not set")
            return None
        return expanded
    return value


def _require_int(cfg: dict[str, Any], key: str, minimum: int = 0) -> int:
    value = cfg.get(key)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"{key} must be an integer >= {minimum}, got {value!r}")
    return value


def _optional_str(value: Any, key: str) -> str | None:
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"{key} must be a string, got {value!r}")
    return value


def _section(cfg: dict[str, Any], key: str) -> dict[str, Any]:
    value = cfg.get(key)
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping, got {value!r}")
    return value


def _build_settings(cfg: dict[str, Any]) -> Settings:
    cache = _section(cfg, "cache")
    github = _section(cfg, "github")
    gitlab = _section(cfg, "gitlab")

    database = _optional_str(cfg.get("database"), "database")
    markers = _optional_str(cfg.get("markers"), "markers")
    if not database or not markers:
        raise ConfigError("database and markers paths are required")

    base_url = _optional_str(cfg.get("wrapdb_base_url"), "wrapdb_base_url")

    return Settings(
        database=Path(database),
        markers=Path(markers),
        stale_after_seconds=_require_int(cfg, "stale_after_seconds"),
        max_tag_pages=_require_int(cfg, "max_tag_pages", minimum=1),
        request_timeout=_require_int(cfg, "request_timeout", minimum=1),
        http_retries=_require_int(cfg, "http_retries"),
        wrapdb_base_url=(base_url or DEFAULTS["wrapdb_base_url"]).rstrip("/"),
        github_token=_optional_str(github.get("token"), "github.token"),
        gitlab_token=_optional_str(gitlab.get("token"), "gitlab.token"),
        detail_ttl=_require_int(cache, "detail_ttl"),
        tags_ttl=_require_int(cache, "tags_ttl"),
        refresh_workers=_require_int(cfg, "refresh_workers", minimum=1),
    )


# -------------------------------
# Public API
# -------------------------------


def load_settings(
    path: Path | str | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    logger: Logger | None = None,
) -> Settings:
    """Load and merge wrapview settings.

    Steps
      1) Load .env into the process environment (python-dotenv).
      2) Start from DEFAULTS.
      3) Merge the YAML settings file on top, if a path is given.
      4) Merge overrides on top.
      5) Expand "${VAR}" strings and validate types.

    Args:
        path: Optional YAML settings file.
        overrides: Optional mapping merged last (same shape as the file).
        logger: Optional logger. Defaults to the global logger.

    Returns:
        Frozen Settings.

    Raises:
        ConfigError: On a missing or unparsable file, a non-mapping top
            level, or values of the wrong type.

    Example:
        ```python
        from wrapview.config import load_settings

        settings = load_settings("wrapview.yaml", overrides={"max_tag_pages": 10})
        print(settings.stale_after_seconds)
        ```

    """
    if logger is None:
        logger = get_global_logger()

    load_dotenv()

    merged: dict[str, Any] = dict(DEFAULTS)

    if path is not None:
        p = Path(path)
        logger.verbose("CONFIG", f"Loading settings: {p}")
        data = _load_yaml_file(p)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"top-level YAML must be a mapping (dict): {p}")
        merged = _deep_merge_dicts(merged, data)

    if overrides:
        merged = _deep_merge_dicts(merged, overrides)

    merged = _expand_env(merged, logger)
    settings = _build_settings(merged)
    logger.debug(
        "CONFIG",
        f"Resolved settings: database={settings.database}, "
        f"stale_after_seconds={settings.stale_after_seconds}",
    )
    return settings
