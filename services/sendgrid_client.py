"""SendGrid v3 mail client used by the notification function endpoints."""

import base64
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from core.logging_utils import sanitize_email
from core.settings import sendgrid_settings
from esign.core.config import (
    ATTACHMENT_FILENAME,
    ERROR_BODY_MAX_CHARS,
    PDF_FETCH_TIMEOUT_SECONDS,
    SENDGRID_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

DEFAULT_FROM_EMAIL = "noreply@esignature-demo.com"
DEFAULT_FROM_NAME = "eSignature Service"


@dataclass
class SendGridResponse:
    status_code: int
    reason: str
    message_id: Optional[str]
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def build_mail_payload(
    to: str,
    subject: str,
    text_body: str,
    html_body: str,
    from_email: str,
    from_name: str,
    attachment_b64: Optional[str] = None,
) -> dict:
    """Build a SendGrid v3 ``mail/send`` request body."""
    payload = {
        "personalizations": [{"to": [{"email": to}], "subject": subject}],
        "from": {"email": from_email, "name": from_name},
        "content": [
            {"type": "text/plain", "value": text_body},
            {"type": "text/html", "value": html_body},
        ],
    }
    if attachment_b64:
        payload["attachments"] = [
            {
                "content": attachment_b64,
                "filename": ATTACHMENT_FILENAME,
                "type": "application/pdf",
                "disposition": "attachment",
            }
        ]
    return payload


class SendGridClient:
    """Thin async wrapper over the SendGrid mail API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        from_email: str | None = None,
        from_name: str | None = None,
        timeout: float = SENDGRID_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if api_key is None and sendgrid_settings.SENDGRID_API_KEY is not None:
            api_key = sendgrid_settings.SENDGRID_API_KEY.get_secret_value()
        self.api_key = api_key or None
        self.api_url = api_url or sendgrid_settings.SENDGRID_API_URL
        self.from_email = from_email or sendgrid_settings.FROM_EMAIL
        self.from_name = from_name or sendgrid_settings.FROM_NAME
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def sender_email(self) -> str:
        return self.from_email or DEFAULT_FROM_EMAIL

    @property
    def sender_name(self) -> str:
        return self.from_name or DEFAULT_FROM_NAME

    async def fetch_attachment(self, pdf_url: str) -> Optional[str]:
        """Download the document and return it base64-encoded.

        A document that cannot be fetched is skipped (the email still goes
        out without an attachment).
        """
        try:
            async with httpx.AsyncClient(
                timeout=PDF_FETCH_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.get(pdf_url)
        except httpx.HTTPError as e:
            logger.warning(f"Error fetching PDF for attachment: {e}")
            return None

        if not response.is_success:
            logger.warning(
                f"Failed to fetch PDF for attachment: {response.status_code} {response.reason_phrase}"
            )
            return None
        return base64.b64encode(response.content).decode("ascii")

    async def send_mail(self, payload: dict) -> SendGridResponse:
        """POST a mail payload.

        Raises:
            RuntimeError: If no API key is configured
            httpx.HTTPError: On transport failure
        """
        if not self.configured:
            raise RuntimeError("SENDGRID_API_KEY is not configured")

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.post(
                self.api_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )

        to = payload["personalizations"][0]["to"][0]["email"]
        result = SendGridResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            message_id=response.headers.get("X-Message-Id"),
            body=response.text,
        )
        if result.ok:
            logger.info(
                "SendGrid accepted email to %s: message_id=%s",
                sanitize_email(to),
                result.message_id,
            )
        else:
            logger.error(
                "SendGrid API error: status=%s body=%s",
                result.status_code,
                result.body[:ERROR_BODY_MAX_CHARS],
            )
        return result


def create_sendgrid_client_from_env() -> SendGridClient:
    """Factory function to create SendGridClient from centralized settings."""
    return SendGridClient()
