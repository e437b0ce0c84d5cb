"""Unit tests for the send-email function client."""

import json

import httpx
import pytest
from esign.core.exceptions import DeliveryError, DeliveryUnavailableError
from esign.models.dto import OutboundEmail
from services.delivery_client import DeliveryClient

URL = "https://functions.example.com/send-email"


def email() -> OutboundEmail:
    return OutboundEmail(
        to="alice@example.com",
        subject="Signature Request: Test",
        html_body="<p>hi</p>",
        text_body="hi",
        pdf_url="https://s3.example.com/doc.pdf",
    )


def client_for(handler) -> DeliveryClient:
    return DeliveryClient(
        url=URL, token="secret", timeout=5.0, transport=httpx.MockTransport(handler)
    )


class TestDeliveryClientSuccess:
    """Tests for accepted notifications."""

    @pytest.mark.asyncio
    async def test_posts_wire_format_with_bearer(self):
        """Test the request body uses camelCase keys and the bearer header."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "messageId": "abc"})

        receipt = await client_for(handler).send(email())

        assert receipt.message_id == "abc"
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == {
            "to": "alice@example.com",
            "subject": "Signature Request: Test",
            "htmlBody": "<p>hi</p>",
            "textBody": "hi",
            "pdfUrl": "https://s3.example.com/doc.pdf",
        }


class TestDeliveryClientFailures:
    """Tests for per-notification and channel-wide failures."""

    @pytest.mark.asyncio
    async def test_non_2xx_uses_body_error(self):
        """Test an error field in a failed response is surfaced."""
        client = client_for(
            lambda r: httpx.Response(500, json={"success": False, "error": "Failed to send email"})
        )
        with pytest.raises(DeliveryError, match="Failed to send email"):
            await client.send(email())

    @pytest.mark.asyncio
    async def test_non_2xx_without_body(self):
        """Test status and reason are used when the body has no error."""
        client = client_for(lambda r: httpx.Response(502, text="bad gateway"))
        with pytest.raises(DeliveryError, match="HTTP 502: Bad Gateway"):
            await client.send(email())

    @pytest.mark.asyncio
    async def test_success_false(self):
        """Test a 2xx body reporting failure is a delivery error."""
        client = client_for(lambda r: httpx.Response(200, json={"success": False}))
        with pytest.raises(DeliveryError, match="Email sending failed") as exc_info:
            await client.send(email())
        assert not isinstance(exc_info.value, DeliveryUnavailableError)

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        """Test an undecodable 2xx body is a delivery error."""
        client = client_for(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(DeliveryError, match="malformed response body"):
            await client.send(email())

    @pytest.mark.asyncio
    async def test_timeout_is_per_address(self):
        """Test a timeout fails only this notification."""

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(DeliveryError) as exc_info:
            await client_for(handler).send(email())
        assert not isinstance(exc_info.value, DeliveryUnavailableError)

    @pytest.mark.asyncio
    async def test_connect_error_is_channel_wide(self):
        """Test an unreachable function aborts the whole run."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DeliveryUnavailableError):
            await client_for(handler).send(email())

    @pytest.mark.asyncio
    async def test_missing_configuration(self):
        """Test a client without URL or token is unavailable."""
        client = DeliveryClient(url="", token="")
        with pytest.raises(DeliveryUnavailableError):
            await client.send(email())
