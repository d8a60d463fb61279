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

"""Settings loading for wrapview.

Built-in defaults are deep-merged with an optional YAML settings file and
host-supplied overrides (dicts merged recursively, lists and scalars
replaced). "${VAR}" values are expanded from the environment after a .env
file is loaded.

Public API:

- load_settings: Resolve settings into a frozen Settings object
- Settings: The resolved settings dataclass

Example:
    Basic usage:

        from wrapview.config import load_settings

        settings = load_settings("wrapview.yaml")
        print(settings.database)

"""

from .loader import DEFAULTS, Settings, load_settings

__all__ = ["DEFAULTS", "Settings", "load_settings"]
