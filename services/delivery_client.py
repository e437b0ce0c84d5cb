import logging

import httpx

from core.logging_utils import sanitize_email
from core.settings import delivery_settings
from esign.core.exceptions import DeliveryError, DeliveryUnavailableError
from esign.models.dto import DeliveryReceipt, OutboundEmail

logger = logging.getLogger(__name__)


def _error_from_body(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None


class DeliveryClient:
    """Posts signing invitations to the send-email function."""

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url if url is not None else delivery_settings.EMAIL_FUNCTION_URL
        self.token = (
            token
            if token is not None
            else delivery_settings.EMAIL_FUNCTION_TOKEN.get_secret_value()
        )
        self.timeout = timeout or delivery_settings.EMAIL_TIMEOUT_SECONDS
        self._transport = transport

        logger.info(
            f"DeliveryClient initialized with URL: {self.url}, timeout: {self.timeout}s"
        )

    async def send(self, email: OutboundEmail) -> DeliveryReceipt:
        """Send one notification.

        Args:
            email: Outbound notification request

        Returns:
            DeliveryReceipt with the provider message id

        Raises:
            DeliveryUnavailableError: Function not configured or unreachable
            DeliveryError: Any failure specific to this notification
        """
        if not self.url or not self.token:
            raise DeliveryUnavailableError("Email function configuration missing")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.url,
                    json=email.to_wire(),
                    headers={
                        "Authorization": f"Bearer {self.token}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.ConnectError as e:
            logger.error(f"Email function unreachable: {e}")
            raise DeliveryUnavailableError(f"Email function unreachable: {e}") from e
        except httpx.HTTPError as e:
            raise DeliveryError(
                f"Email delivery failed: {type(e).__name__}: {e}"
            ) from e

        if not response.is_success:
            reason = _error_from_body(response) or (
                f"HTTP {response.status_code}: {response.reason_phrase}"
            )
            raise DeliveryError(f"Email delivery failed: {reason}")

        try:
            result = response.json()
        except ValueError as e:
            raise DeliveryError("Email delivery failed: malformed response body") from e

        if not isinstance(result, dict) or not result.get("success"):
            reason = (
                result.get("error") if isinstance(result, dict) else None
            ) or "Email sending failed"
            raise DeliveryError(f"Email delivery failed: {reason}")

        logger.info(
            "Email accepted for %s: message_id=%s",
            sanitize_email(email.to),
            result.get("messageId"),
        )
        return DeliveryReceipt(message_id=result.get("messageId"))


def create_delivery_client_from_env() -> DeliveryClient:
    """Factory function to create DeliveryClient from centralized settings."""
    return DeliveryClient(
        url=delivery_settings.EMAIL_FUNCTION_URL,
        token=delivery_settings.EMAIL_FUNCTION_TOKEN.get_secret_value(),
        timeout=delivery_settings.EMAIL_TIMEOUT_SECONDS,
    )
