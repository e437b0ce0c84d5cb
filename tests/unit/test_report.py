"""Unit tests for dispatch records and reports."""

import pytest
from esign.dispatch.report import DispatchOutcome, DispatchRecord, DispatchReport


def record(address: str) -> DispatchRecord:
    return DispatchRecord(address=address, recipient_id="r", order_number=None, token="t")


class TestDispatchRecord:
    """Tests for the record state machine."""

    def test_sent_is_terminal(self):
        """Test a sent record cannot change again."""
        r = record("a@x.com")
        r.mark_sent("m1")
        assert r.outcome is DispatchOutcome.SENT
        with pytest.raises(RuntimeError):
            r.mark_failed("late")

    def test_failed_is_terminal(self):
        """Test a failed record cannot be marked sent."""
        r = record("a@x.com")
        r.mark_failed("nope")
        with pytest.raises(RuntimeError):
            r.mark_sent()


class TestDispatchReport:
    """Tests for report aggregation."""

    def test_from_records(self):
        """Test counts, success and summary."""
        a, b, c = record("a@x.com"), record("b@x.com"), record("c@x.com")
        a.mark_sent()
        b.mark_failed("Failed to send to b@x.com: HTTP 500")
        c.mark_sent()

        report = DispatchReport.from_records([a, b, c])

        assert report.success is False
        assert report.sent_emails == ("a@x.com", "c@x.com")
        assert report.attempted == 3
        assert report.summary() == (
            "2 of 3 emails sent\n- Failed to send to b@x.com: HTTP 500"
        )

    def test_aborted_run_uses_single_reason(self):
        """Test an aborted run reports one aggregate reason."""
        a, b = record("a@x.com"), record("b@x.com")
        a.mark_failed("Failed to send to a@x.com: refused")

        report = DispatchReport.from_records([a, b], aborted_reason="Delivery channel unavailable")

        assert report.errors == ("Delivery channel unavailable",)
        assert report.attempted == 1
        assert report.sent_count == 0

    def test_empty_run_succeeds(self):
        """Test no records means nothing failed."""
        report = DispatchReport.from_records([])
        assert report.success is True
        assert report.summary() == "0 of 0 emails sent"
