"""
Tests for the reporter implementations.
"""

import io
import logging
from unittest.mock import MagicMock

from rich.console import Console

from cloudprep.errors import CloudPrepareError
from cloudprep.reporter import ConsoleReporter, LoggingReporter, RecordingReporter


class TestRecordingReporter:
    """Tests for RecordingReporter."""

    def test_records_formatted_events(self):
        reporter = RecordingReporter()

        reporter.started("Opening %s", "ports")
        reporter.warning("Security group %s not found", "demo-nsg")
        reporter.succeeded("Done")

        assert reporter.events == [
            ("started", "Opening ports"),
            ("warning", "Security group demo-nsg not found"),
            ("succeeded", "Done"),
        ]
        assert reporter.last_message == "Done"

    def test_failed_joins_errors(self):
        reporter = RecordingReporter()

        reporter.failed(CloudPrepareError("first"), ValueError("second"))

        assert reporter.events == [("failed", "first; second")]

    def test_message_with_percent_and_no_args_is_kept(self):
        reporter = RecordingReporter()

        reporter.started("100% of ports")

        assert reporter.last_message == "100% of ports"

    def test_delegate_receives_events(self):
        delegate = MagicMock()
        reporter = RecordingReporter(delegate=delegate)
        error = CloudPrepareError("boom")

        reporter.started("Opening %s", "ports")
        reporter.failed(error)

        delegate.started.assert_called_once_with("Opening %s", "ports")
        delegate.failed.assert_called_once_with(error)

    def test_last_message_empty(self):
        assert RecordingReporter().last_message is None


class TestLoggingReporter:
    """Tests for LoggingReporter."""

    def test_levels(self, caplog):
        reporter = LoggingReporter(logging.getLogger("cloudprep.test"))

        with caplog.at_level(logging.INFO, logger="cloudprep.test"):
            reporter.started("Opening %s", "ports")
            reporter.warning("Careful")
            reporter.failed(CloudPrepareError("boom"))

        levels = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert levels == [
            (logging.INFO, "Opening ports"),
            (logging.WARNING, "Careful"),
            (logging.ERROR, "Failed: boom"),
        ]


class TestConsoleReporter:
    """Tests for ConsoleReporter."""

    def test_renders_one_line_per_event(self):
        output = io.StringIO()
        reporter = ConsoleReporter(Console(file=output, width=200, color_system=None))

        reporter.started("Opening %s", "ports")
        reporter.succeeded("Opened %s", "4800/udp")
        reporter.failed(CloudPrepareError("boom"))

        lines = output.getvalue().splitlines()
        assert lines == ["• Opening ports...", "✓ Opened 4800/udp", "✗ boom"]

    def test_bracketed_text_is_printed_verbatim(self):
        output = io.StringIO()
        reporter = ConsoleReporter(Console(file=output, width=200, color_system=None))

        reporter.failed(
            CloudPrepareError('updating subnet "x" failed', cause=RuntimeError("[/subnets] bad"))
        )
        reporter.warning("Rule %s kept", "[bold]allow-ssh")

        lines = output.getvalue().splitlines()
        assert lines == [
            '✗ updating subnet "x" failed: [/subnets] bad',
            "! Rule [bold]allow-ssh kept",
        ]
