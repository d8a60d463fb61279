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

"""Small JSON key-value store for sync markers.

The bulk sync records the SHA-256 of the last imported release manifest
here so an unchanged manifest can be skipped without touching the database.

File layout::

    {
      "metadata": {
        "schema_version": "1",
        "wrapview_version": "0.1.0",
        "last_updated": "2025-01-01T00:00:00+00:00"
      },
      "values": {
        "releases_hash": "9f86d08..."
      }
    }

Example:
    ```python
    from pathlib import Path
    from wrapview.store import MarkerStore

    markers = MarkerStore(Path("state/markers.json"))
    markers.load()
    if markers.get("releases_hash") != new_hash:
        ...
        markers.put("releases_hash", new_hash)
    ```
"""

from __future__ import annotations

from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Any

from wrapview import __version__
from wrapview.exceptions import StoreError

RELEASES_HASH_KEY = "releases_hash"


def create_default_markers() -> dict[str, Any]:
    """Create an empty marker document."""
    return {
        "metadata": {
            "wrapview_version": __version__,
            "schema_version": "1",
            "last_updated": datetime.now(UTC).isoformat(),
        },
        "values": {},
    }


class MarkerStore:
    """Key-value markers persisted to a JSON file.

    Attributes:
        path: Path to the JSON marker file.
        state: In-memory marker document.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.state: dict[str, Any] = {}

    def load(self) -> dict[str, Any]:
        """Load markers from file.

        Creates the file if it doesn't exist. A corrupted file is renamed to
        "<name>.json.backup" and replaced with an empty one.

        Raises:
            StoreError: If the file was corrupted (after the backup was made).

        """
        try:
            with open(self.path, encoding="utf-8") as f:
                self.state = json.load(f)
        except FileNotFoundError:
            self.state = create_default_markers()
            self.save()
        except json.JSONDecodeError as err:
            backup = self.path.with_suffix(".json.backup")
            self.path.rename(backup)
            self.state = create_default_markers()
            self.save()
            raise StoreError(
                f"Corrupted marker file backed up to {backup}. "
                f"Created fresh marker file."
            ) from err

        if not isinstance(self.state, dict):
            self.state = create_default_markers()
        if not isinstance(self.state.get("values"), dict):
            self.state["values"] = {}
        return self.state

    def save(self) -> None:
        """Write markers to file, updating metadata.last_updated."""
        self.state.setdefault("metadata", {})
        self.state["metadata"]["last_updated"] = datetime.now(UTC).isoformat()
        self.state.setdefault("values", {})

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.state, f, indent=2, sort_keys=True)
            f.write("\n")

    def get(self, key: str) -> str | None:
        if not self.state:
            self.load()
        return self.state["values"].get(key)

    def put(self, key: str, value: str) -> None:
        """Set a marker and persist immediately."""
        if not self.state:
            self.load()
        self.state["values"][key] = value
        self.save()
