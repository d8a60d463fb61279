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

"""Logging interface for wrapview.

wrapview runs inside a host (a web backend, a scheduled sync job), so it
never configures output on its own. Every function that reports progress
takes an optional ``logger`` argument and falls back to a process-wide
logger that is silent until the host installs one.

Output Levels:

- step: Bulk sync progress ("[1/3] Fetching release manifest..."), always
  written by StreamLogger.
- verbose: One line per upstream call or store write, tagged with a prefix
  such as SYNC, METADATA or WARNING.
- debug: Cache hits, parsed tag pages, skipped option blocks. Debug lines
  from worker threads carry the thread name, so refresh_packages() output
  can be told apart.

Example:
    Send verbose output to a log file:
        ```python
        from wrapview.logging import get_logger, set_global_logger

        with open("sync.log", "a", encoding="utf-8") as fh:
            set_global_logger(get_logger(verbose=True, stream=fh))
            ...
        ```

    Capture messages in a test:
        ```python
        logger = RecordingLogger()
        sync_database(store, markers, logger=logger)
        assert "Skipping empty: no versions found" in logger.messages("SYNC")
        ```
"""

from __future__ import annotations

from dataclasses import dataclass
import sys
import threading
from typing import Protocol, TextIO


class Logger(Protocol):
    """Protocol for logger implementations."""

    def step(self, step: int, total: int, message: str) -> None:
        """Report progress of a multi-step operation.

        Args:
            step: Current step number (1-based).
            total: Total number of steps.
            message: Step description.
        """
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Report a routine event (e.g., prefix "SYNC", "METADATA")."""
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Report a diagnostic detail (e.g., prefix "HTTP", "OPTIONS")."""
        ...


class StreamLogger:
    """Logger writing ``[PREFIX] message`` lines to a text stream.

    Writes are serialized with a lock because refresh_packages() logs from
    several worker threads at once.
    """

    def __init__(
        self,
        verbose: bool = False,
        debug: bool = False,
        stream: TextIO | None = None,
    ) -> None:
        """Initialize the logger.

        Args:
            verbose: Write verbose messages.
            debug: Write debug messages (implies verbose).
            stream: Output stream. Defaults to sys.stderr at write time.
        """
        self._verbose = verbose or debug
        self._debug = debug
        self._stream = stream
        self._lock = threading.Lock()

    def _write(self, line: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        with self._lock:
            stream.write(line + "\n")
            stream.flush()

    def step(self, step: int, total: int, message: str) -> None:
        self._write(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            self._write(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if not self._debug:
            return
        thread = threading.current_thread()
        if thread is threading.main_thread():
            self._write(f"[{prefix}] {message}")
        else:
            self._write(f"[{prefix}] ({thread.name}) {message}")


class SilentLogger:
    """Logger that drops everything. Installed globally by default."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass


@dataclass(frozen=True)
class LogRecord:
    """One message captured by RecordingLogger."""

    level: str
    prefix: str
    message: str


class RecordingLogger:
    """Logger that keeps every message in memory.

    Attributes:
        records: Captured messages in emission order. Steps are recorded
            with level "step" and prefix "STEP".
    """

    def __init__(self) -> None:
        self.records: list[LogRecord] = []
        self._lock = threading.Lock()

    def _record(self, level: str, prefix: str, message: str) -> None:
        with self._lock:
            self.records.append(LogRecord(level, prefix, message))

    def step(self, step: int, total: int, message: str) -> None:
        self._record("step", "STEP", f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        self._record("verbose", prefix, message)

    def debug(self, prefix: str, message: str) -> None:
        self._record("debug", prefix, message)

    def messages(self, prefix: str | None = None) -> list[str]:
        """Captured message texts, optionally only those with a prefix."""
        return [r.message for r in self.records if prefix is None or r.prefix == prefix]


_global_logger: Logger = SilentLogger()


def get_logger(
    verbose: bool = False, debug: bool = False, stream: TextIO | None = None
) -> Logger:
    """Build a StreamLogger with the given verbosity.

    Args:
        verbose: Write verbose messages.
        debug: Write debug messages (implies verbose).
        stream: Output stream. Defaults to sys.stderr.

    Returns:
        A configured logger.
    """
    return StreamLogger(verbose=verbose, debug=debug, stream=stream)


def get_global_logger() -> Logger:
    """Return the process-wide fallback logger."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Install the process-wide fallback logger.

    Args:
        logger: Logger used by every function called without one.
    """
    global _global_logger
    _global_logger = logger
