"""
Sequential notification of every address of every recipient.

Recipients are processed in the given order, and each recipient's addresses in
the order they were added. Every send is awaited before the next one starts.
A failed send is recorded against its address and the run continues; only a
channel-wide failure stops the run early.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol

from core.logging_utils import sanitize_email
from esign.core.exceptions import DeliveryError, DeliveryUnavailableError
from esign.dispatch.links import build_signing_url, generate_token
from esign.dispatch.report import DispatchRecord, DispatchReport
from esign.dispatch.templates import build_email_template
from esign.models.dto import DeliveryReceipt, OutboundEmail, SignatureRequestPayload

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send(self, email: OutboundEmail) -> DeliveryReceipt: ...


@dataclass(slots=True)
class DispatchRecipient:
    """A recipient as dispatch sees it: a stable id and its addresses."""

    recipient_id: str
    emails: list[str] = field(default_factory=list)


class DispatchSequencer:
    """Send one signing invitation per address and aggregate the outcomes."""

    def __init__(
        self,
        notifier: Notifier,
        signing_url_base: str,
        token_factory: Callable[[], str] = generate_token,
    ):
        self.notifier = notifier
        self.signing_url_base = signing_url_base
        self.token_factory = token_factory

    def plan(
        self,
        recipients: list[DispatchRecipient],
        sign_in_order: bool,
        only_addresses: Optional[Iterable[str]] = None,
    ) -> list[DispatchRecord]:
        """Create pending records in send order.

        Order numbers come from the recipient's position in the full list,
        so filtering with ``only_addresses`` does not renumber anyone.
        """
        wanted = {a.lower() for a in only_addresses} if only_addresses is not None else None
        records: list[DispatchRecord] = []
        for index, recipient in enumerate(recipients):
            order_number = index + 1 if sign_in_order else None
            for address in recipient.emails:
                if wanted is not None and address.lower() not in wanted:
                    continue
                records.append(
                    DispatchRecord(
                        address=address,
                        recipient_id=recipient.recipient_id,
                        order_number=order_number,
                        token=self.token_factory(),
                    )
                )
        return records

    async def dispatch(
        self,
        recipients: list[DispatchRecipient],
        request: SignatureRequestPayload,
        pdf_url: Optional[str],
        request_id: str,
        only_addresses: Optional[Iterable[str]] = None,
    ) -> DispatchReport:
        """Notify every planned address and return the run report.

        Args:
            recipients: Recipients in signing order
            request: Shared description of the signing request
            pdf_url: Fetchable reference to the generated document
            request_id: Identifier of this dispatch run (embedded in links)
            only_addresses: Restrict the run to these addresses

        Returns:
            DispatchReport with sent addresses and failure reasons
        """
        records = self.plan(recipients, request.sign_in_order, only_addresses)
        aborted_reason: Optional[str] = None

        logger.info(
            "Dispatching %d notifications (sequential=%s)",
            len(records),
            request.sign_in_order,
            extra={"request_id": request_id},
        )

        for record in records:
            signing_url = build_signing_url(
                self.signing_url_base, request_id, record.recipient_id, record.token
            )
            template = build_email_template(request, signing_url, record.order_number)
            email = OutboundEmail(
                to=record.address,
                subject=template.subject,
                html_body=template.html_body,
                text_body=template.text_body,
                pdf_url=pdf_url,
            )

            try:
                receipt = await self.notifier.send(email)
            except DeliveryUnavailableError as e:
                record.mark_failed(f"Failed to send to {record.address}: {e}")
                aborted_reason = f"Delivery channel unavailable: {e}"
                logger.error(
                    "Delivery channel unavailable, aborting run: %s",
                    e,
                    extra={
                        "request_id": request_id,
                        "recipient_id": record.recipient_id,
                        "recipient_email": record.address,
                    },
                )
                break
            except DeliveryError as e:
                record.mark_failed(f"Failed to send to {record.address}: {e}")
                logger.warning(
                    "Failed to send to %s: %s",
                    sanitize_email(record.address),
                    e,
                    extra={"request_id": request_id, "recipient_id": record.recipient_id},
                )
                continue
            except Exception as e:
                record.mark_failed(f"Failed to send to {record.address}: {e}")
                reason = str(e) or type(e).__name__
                aborted_reason = f"Dispatch aborted at {record.address}: {reason}"
                logger.exception(
                    "Unexpected error while dispatching, aborting run",
                    extra={
                        "request_id": request_id,
                        "recipient_id": record.recipient_id,
                        "recipient_email": record.address,
                    },
                )
                break

            record.mark_sent(receipt.message_id)
            logger.info(
                "Email sent to %s (message_id=%s)",
                sanitize_email(record.address),
                receipt.message_id,
                extra={
                    "request_id": request_id,
                    "recipient_id": record.recipient_id,
                    "order_number": record.order_number,
                },
            )

        report = DispatchReport.from_records(records, aborted_reason)
        logger.info(
            "Dispatch finished: %s",
            report.summary().splitlines()[0],
            extra={
                "request_id": request_id,
                "sent_count": report.sent_count,
                "attempted_count": report.attempted,
            },
        )
        return report
