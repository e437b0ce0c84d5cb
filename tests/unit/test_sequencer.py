"""Unit tests for the dispatch sequencer."""

from urllib.parse import parse_qs, urlparse

import pytest
from esign.core.exceptions import DeliveryError, DeliveryUnavailableError
from esign.dispatch.report import DispatchOutcome
from esign.dispatch.sequencer import DispatchRecipient, DispatchSequencer
from esign.models.dto import DeliveryReceipt, OutboundEmail

SIGNING_BASE = "https://sign.example.com/sign"


class RecordingNotifier:
    """Notifier double that records every email and fails on demand."""

    def __init__(self, failures: dict | None = None):
        self.sent: list[OutboundEmail] = []
        self.failures = failures or {}

    async def send(self, email: OutboundEmail) -> DeliveryReceipt:
        self.sent.append(email)
        error = self.failures.get(email.to)
        if error is not None:
            raise error
        return DeliveryReceipt(message_id=f"msg-{len(self.sent)}")


def recipients() -> list[DispatchRecipient]:
    return [
        DispatchRecipient("r1", ["a1@x.com", "a2@x.com"]),
        DispatchRecipient("r2", ["b1@x.com"]),
    ]


def link_params(email: OutboundEmail) -> dict:
    start = email.text_body.index(SIGNING_BASE)
    url = email.text_body[start:].split()[0]
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


class TestDispatchOrder:
    """Tests for send order and order numbers."""

    @pytest.mark.asyncio
    async def test_sequential_order_numbers(self, payload):
        """Test recipients are numbered 1, 2, 3 in sequential mode."""
        notifier = RecordingNotifier()
        sequencer = DispatchSequencer(notifier, SIGNING_BASE)
        people = [
            DispatchRecipient("r1", ["one@x.com"]),
            DispatchRecipient("r2", ["two@x.com"]),
            DispatchRecipient("r3", ["three@x.com"]),
        ]

        report = await sequencer.dispatch(people, payload, "https://s3/doc.pdf", "req-1")

        assert [r.order_number for r in report.records] == [1, 2, 3]
        assert [e.to for e in notifier.sent] == ["one@x.com", "two@x.com", "three@x.com"]
        assert "You are recipient #1 in the signing order." in notifier.sent[0].text_body
        assert "You are recipient #3 in the signing order." in notifier.sent[2].text_body

    @pytest.mark.asyncio
    async def test_parallel_mode_has_no_order_numbers(self, payload):
        """Test order numbers are absent when sequential signing is off."""
        notifier = RecordingNotifier()
        sequencer = DispatchSequencer(notifier, SIGNING_BASE)
        parallel = payload.model_copy(update={"sign_in_order": False})

        report = await sequencer.dispatch(recipients(), parallel, None, "req-1")

        assert all(r.order_number is None for r in report.records)
        assert "signing order" not in notifier.sent[0].text_body

    @pytest.mark.asyncio
    async def test_addresses_share_recipient_order_number(self, payload):
        """Test every address of a recipient carries the recipient's number."""
        sequencer = DispatchSequencer(RecordingNotifier(), SIGNING_BASE)

        report = await sequencer.dispatch(recipients(), payload, None, "req-1")

        assert [(r.address, r.order_number) for r in report.records] == [
            ("a1@x.com", 1),
            ("a2@x.com", 1),
            ("b1@x.com", 2),
        ]

    @pytest.mark.asyncio
    async def test_email_carries_document_reference(self, payload):
        """Test the pdf url and subject are passed to the notifier."""
        notifier = RecordingNotifier()
        sequencer = DispatchSequencer(notifier, SIGNING_BASE)

        await sequencer.dispatch(recipients(), payload, "https://s3/doc.pdf", "req-1")

        email = notifier.sent[0]
        assert email.pdf_url == "https://s3/doc.pdf"
        assert email.subject == "Signature Request: Consulting Agreement"


class TestDispatchFailures:
    """Tests for failure aggregation."""

    @pytest.mark.asyncio
    async def test_partial_failure_is_aggregated(self, payload):
        """Test one failed address does not stop the others."""
        notifier = RecordingNotifier(
            failures={"a2@x.com": DeliveryError("Email delivery failed: HTTP 500")}
        )
        sequencer = DispatchSequencer(notifier, SIGNING_BASE)

        report = await sequencer.dispatch(recipients(), payload, None, "req-1")

        assert report.success is False
        assert report.sent_emails == ("a1@x.com", "b1@x.com")
        assert len(report.errors) == 1
        assert "a2@x.com" in report.errors[0]
        assert report.errors[0].startswith("Failed to send to a2@x.com:")
        assert report.attempted == 3
        assert report.summary().startswith("2 of 3 emails sent")

    @pytest.mark.asyncio
    async def test_all_sent(self, payload):
        """Test a clean run reports success."""
        sequencer = DispatchSequencer(RecordingNotifier(), SIGNING_BASE)

        report = await sequencer.dispatch(recipients(), payload, None, "req-1")

        assert report.success is True
        assert report.errors == ()
        assert report.sent_count == 3
        assert all(r.outcome is DispatchOutcome.SENT for r in report.records)
        assert report.records[0].message_id == "msg-1"

    @pytest.mark.asyncio
    async def test_unavailable_channel_short_circuits(self, payload):
        """Test a channel-wide failure stops the run and keeps earlier sends."""
        notifier = RecordingNotifier(
            failures={"a2@x.com": DeliveryUnavailableError("connection refused")}
        )
        sequencer = DispatchSequencer(notifier, SIGNING_BASE)

        report = await sequencer.dispatch(recipients(), payload, None, "req-1")

        assert report.success is False
        assert report.sent_emails == ("a1@x.com",)
        assert report.errors == ("Delivery channel unavailable: connection refused",)
        assert [e.to for e in notifier.sent] == ["a1@x.com", "a2@x.com"]
        assert report.records[2].outcome is DispatchOutcome.PENDING
        assert report.attempted == 2

    @pytest.mark.asyncio
    async def test_unexpected_error_aborts_run(self, payload):
        """Test an unexpected exception aborts with the failing address and message."""
        notifier = RecordingNotifier(failures={"a1@x.com": ValueError("boom")})
        sequencer = DispatchSequencer(notifier, SIGNING_BASE)

        report = await sequencer.dispatch(recipients(), payload, None, "req-1")

        assert report.success is False
        assert report.errors == ("Dispatch aborted at a1@x.com: boom",)
        assert report.sent_emails == ()


class TestTokensAndLinks:
    """Tests for signing tokens embedded in links."""

    @pytest.mark.asyncio
    async def test_each_address_gets_unique_token(self, payload):
        """Test tokens are 256-bit hex and never reused."""
        notifier = RecordingNotifier()
        sequencer = DispatchSequencer(notifier, SIGNING_BASE)

        report = await sequencer.dispatch(recipients(), payload, None, "req-1")

        tokens = [r.token for r in report.records]
        assert len(set(tokens)) == len(tokens)
        assert all(len(t) == 64 for t in tokens)
        assert all(int(t, 16) >= 0 for t in tokens)

    @pytest.mark.asyncio
    async def test_link_identifies_run_recipient_and_token(self, payload):
        """Test the signing link carries request, recipient and token."""
        notifier = RecordingNotifier()
        sequencer = DispatchSequencer(
            notifier, SIGNING_BASE, token_factory=iter(["t1", "t2", "t3"]).__next__
        )

        await sequencer.dispatch(recipients(), payload, None, "req-42")

        assert link_params(notifier.sent[1]) == {
            "request": "req-42",
            "recipient": "r1",
            "token": "t2",
        }
        assert link_params(notifier.sent[2])["recipient"] == "r2"


class TestOnlyAddresses:
    """Tests for re-running dispatch on a subset of addresses."""

    @pytest.mark.asyncio
    async def test_filter_keeps_original_order_numbers(self, payload):
        """Test filtered runs send only to listed addresses with full numbering."""
        notifier = RecordingNotifier()
        sequencer = DispatchSequencer(notifier, SIGNING_BASE)

        report = await sequencer.dispatch(
            recipients(), payload, None, "req-1", only_addresses=["B1@x.com"]
        )

        assert [e.to for e in notifier.sent] == ["b1@x.com"]
        assert report.records[0].order_number == 2
        assert report.summary() == "1 of 1 emails sent"

    def test_plan_without_filter_lists_every_address(self, payload):
        """Test plan creates one pending record per address."""
        sequencer = DispatchSequencer(RecordingNotifier(), SIGNING_BASE)

        records = sequencer.plan(recipients(), sign_in_order=False)

        assert [r.address for r in records] == ["a1@x.com", "a2@x.com", "b1@x.com"]
        assert all(r.outcome is DispatchOutcome.PENDING for r in records)
