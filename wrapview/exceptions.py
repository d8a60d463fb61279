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

"""Exception hierarchy for wrapview.

This module defines a custom exception hierarchy that allows library users
to distinguish between different types of errors:

- ConfigError: Settings file problems (YAML parse, wrong types)
- NetworkError: Upstream unavailable (connection failures, non-2xx responses)
- ResponseParseError: Upstream answered but the body could not be parsed
- StoreError: Persistent store problems (corrupted marker file, SQLite errors)

All exceptions inherit from WrapviewError, allowing users to catch all
wrapview errors with a single except clause if needed.

A package or version that does not exist is not an error: lookups return
None. A release tag that does not follow the recorded version's naming
scheme is not an error either: reconciliation returns an empty result.

Example:
    Catching specific error types:
        ```python
        from wrapview.exceptions import NetworkError, ResponseParseError
        from wrapview.wrapdb import fetch_releases

        try:
            manifest = fetch_releases()
        except ResponseParseError as e:
            print(f"Bad payload: {e.body[:200]}")
        except NetworkError as e:
            print(f"WrapDB unavailable: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "WrapviewError",
    "ConfigError",
    "NetworkError",
    "ResponseParseError",
    "StoreError",
]


class WrapviewError(Exception):
    """Base exception for all wrapview errors."""

    pass


class ConfigError(WrapviewError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Settings values of the wrong type
    - Missing settings files that were explicitly requested
    """

    pass


class NetworkError(WrapviewError):
    """Raised when an upstream service cannot be reached or refuses a request.

    Attributes:
        status_code: HTTP status code of the failed response, or None when
            the request never got a response (DNS, timeout, connection reset).

    Example:
        Inspect the status code:
            ```python
            try:
                provider.fetch_project(identity)
            except NetworkError as e:
                if e.status_code == 403:
                    print("Rate limited, configure a token")
            ```
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResponseParseError(NetworkError):
    """Raised when an upstream response body is malformed.

    The raw body is kept on the exception for diagnostics.

    Attributes:
        body: The response text that failed to parse.
    """

    def __init__(
        self, message: str, body: str, status_code: int | None = None
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.body = body


class StoreError(WrapviewError):
    """Raised for persistent store failures.

    This exception is raised when there are problems with:

    - Corrupted marker files (backed up and replaced)
    - SQLite errors while reading or writing the package database
    """

    pass
