"""
Tests for wrapview.logging module.

Tests the logger implementations and the global fallback logger.
"""

from __future__ import annotations

import io
import threading

from wrapview.logging import (
    RecordingLogger,
    SilentLogger,
    StreamLogger,
    get_global_logger,
    get_logger,
    set_global_logger,
)


class TestStreamLogger:
    """Tests for StreamLogger."""

    def test_quiet_by_default(self):
        """Test only steps are written without verbose or debug."""
        stream = io.StringIO()
        logger = get_logger(stream=stream)

        logger.step(1, 3, "Fetching release manifest...")
        logger.verbose("SYNC", "hidden")
        logger.debug("HTTP", "hidden")

        assert stream.getvalue() == "[1/3] Fetching release manifest...\n"

    def test_verbose(self):
        """Test verbose lines carry their prefix."""
        stream = io.StringIO()
        logger = StreamLogger(verbose=True, stream=stream)

        logger.verbose("SYNC", "Prepared 2 package(s) for insertion")
        logger.debug("HTTP", "hidden")

        assert stream.getvalue() == "[SYNC] Prepared 2 package(s) for insertion\n"

    def test_debug_implies_verbose(self):
        """Test debug mode also writes verbose lines."""
        stream = io.StringIO()
        logger = StreamLogger(debug=True, stream=stream)

        logger.verbose("METADATA", "a")
        logger.debug("HTTP", "b")

        assert stream.getvalue() == "[METADATA] a\n[HTTP] b\n"

    def test_debug_from_worker_thread(self):
        """Test worker thread names are included in debug lines."""
        stream = io.StringIO()
        logger = StreamLogger(debug=True, stream=stream)

        worker = threading.Thread(
            target=logger.debug, args=("HTTP", "GET x"), name="refresh-1"
        )
        worker.start()
        worker.join()

        assert stream.getvalue() == "[HTTP] (refresh-1) GET x\n"


class TestRecordingLogger:
    """Tests for RecordingLogger."""

    def test_records_in_order(self):
        """Test all levels are captured."""
        logger = RecordingLogger()
        logger.step(2, 3, "Importing")
        logger.verbose("SYNC", "one")
        logger.debug("HTTP", "two")

        assert [r.level for r in logger.records] == ["step", "verbose", "debug"]
        assert logger.messages() == ["[2/3] Importing", "one", "two"]
        assert logger.messages("HTTP") == ["two"]


class TestGlobalLogger:
    """Tests for the global fallback logger."""

    def test_default_is_silent(self):
        """Test nothing is configured by default."""
        assert isinstance(get_global_logger(), SilentLogger)

    def test_set_global_logger(self):
        """Test installing and restoring the global logger."""
        previous = get_global_logger()
        recorder = RecordingLogger()
        set_global_logger(recorder)
        try:
            get_global_logger().verbose("CONFIG", "hello")
        finally:
            set_global_logger(previous)

        assert recorder.messages("CONFIG") == ["hello"]
        assert get_global_logger() is previous
