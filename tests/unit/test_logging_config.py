"""Unit tests for log formatting."""

import json
import logging
import sys

from esign.core.logging_config import PlainFormatter, StructuredFormatter


def make_record(msg: str = "Email sent", **extra) -> logging.LogRecord:
    record = logging.LogRecord("esign.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Tests for JSON log lines."""

    def test_context_fields_included(self):
        """Test correlation fields from extra appear in the output."""
        line = StructuredFormatter().format(
            make_record(request_id="abc", order_number=2, unrelated="x")
        )
        entry = json.loads(line)

        assert entry["message"] == "Email sent"
        assert entry["request_id"] == "abc"
        assert entry["order_number"] == 2
        assert "unrelated" not in entry
        assert entry["timestamp"].endswith("Z")

    def test_recipient_email_masked(self):
        """Test addresses passed as context are masked."""
        entry = json.loads(
            StructuredFormatter().format(make_record(recipient_email="alice@example.com"))
        )
        assert entry["recipient_email"] == "a***@example.com"

    def test_exception_info(self):
        """Test exception type and message are captured."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record(msg="failed")
            record.exc_info = sys.exc_info()

        entry = json.loads(StructuredFormatter().format(record))
        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "boom"


class TestPlainFormatter:
    """Tests for human-readable lines."""

    def test_trace_id_placeholder(self):
        """Test records without a trace id still format."""
        line = PlainFormatter().format(make_record())
        assert " - Email sent" in line

    def test_trace_id_shown(self):
        """Test a trace id from extra is printed."""
        line = PlainFormatter().format(make_record(trace_id="t-1"))
        assert "t-1 Email sent" in line
