"""Tests for webbot.reporter module."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from webbot.errors import FetchError
from webbot.reporter import ErrorReporter, format_error_line

LINE_RE = re.compile(r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z\] (.+)$")


class TestFormatErrorLine:
    def test_format(self):
        now = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        line = format_error_line("Error processing link #2", "boom", now=now)
        assert line == "[2026-01-02T03:04:05.678Z] Error processing link #2: boom"

    def test_exception_message(self):
        line = format_error_line("ctx", FetchError("Request failed: timeout"))
        assert line.endswith("ctx: Request failed: timeout")

    def test_empty_message_uses_class_name(self):
        line = format_error_line("ctx", TimeoutError())
        assert line.endswith("ctx: TimeoutError")


class TestErrorReporter:
    def test_appends_lines(self, tmp_path):
        log_path = tmp_path / "errors.txt"
        reporter = ErrorReporter(log_path)

        reporter.report("first", "one")
        reporter.report("second", ValueError("two"))

        lines = log_path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert LINE_RE.match(lines[0]).group(1) == "first: one"
        assert LINE_RE.match(lines[1]).group(1) == "second: two"

    def test_existing_log_is_kept(self, tmp_path):
        log_path = tmp_path / "errors.txt"
        log_path.write_text("[old] previous: run\n", encoding="utf-8")

        ErrorReporter(log_path).report("ctx", "new")

        lines = log_path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "[old] previous: run"
        assert lines[1].endswith("ctx: new")

    def test_echoes_to_operator(self, tmp_path, caplog):
        reporter = ErrorReporter(tmp_path / "errors.txt")
        with caplog.at_level(logging.ERROR, logger="webbot.reporter"):
            line = reporter.report("ctx", "message")
        assert line in caplog.text

    def test_unwritable_log_never_raises(self, tmp_path, caplog):
        log_path = tmp_path / "missing-dir" / "errors.txt"
        reporter = ErrorReporter(log_path)

        with caplog.at_level(logging.ERROR, logger="webbot.reporter"):
            line = reporter.report("ctx", "message")

        assert line.endswith("ctx: message")
        assert "Error writing to error log file" in caplog.text
        assert not log_path.exists()

    def test_without_log_path(self, caplog):
        reporter = ErrorReporter()
        with caplog.at_level(logging.ERROR, logger="webbot.reporter"):
            reporter.report("ctx", "message")
        assert "ctx: message" in caplog.text
