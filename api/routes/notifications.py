"""Send-email and test-email function endpoints backed by SendGrid."""

import html
import json
import logging
from datetime import datetime, timezone

import httpx
from api.schemas import SendEmailRequest, SendEmailResponse, TestEmailResponse
from core.dependencies import get_sendgrid_client
from core.logging_utils import sanitize_email
from core.security import require_bearer_token
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from services.sendgrid_client import SendGridClient, build_mail_payload

router = APIRouter(
    prefix="/functions/v1",
    tags=["notifications"],
    dependencies=[Depends(require_bearer_token)],
)
logger = logging.getLogger(__name__)

MISSING_FIELDS_ERROR = "Missing required fields: to, subject, htmlBody"
NOT_CONFIGURED_ERROR = "Email service not configured - Missing SendGrid API key"
SEND_FAILED_ERROR = "Failed to send email"
TEST_FROM_NAME = "eSignature Test Service"


def _send_email_result(status_code: int, **content) -> JSONResponse:
    body = SendEmailResponse(**content).model_dump(by_alias=True, exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


@router.post("/send-email", response_model=SendEmailResponse)
async def send_email(
    body: SendEmailRequest,
    sendgrid: SendGridClient = Depends(get_sendgrid_client),
):
    if not (body.to and body.subject and body.html_body):
        return _send_email_result(400, success=False, error=MISSING_FIELDS_ERROR)

    if not sendgrid.configured:
        logger.error("SENDGRID_API_KEY not found in environment")
        return _send_email_result(500, success=False, error=NOT_CONFIGURED_ERROR)

    attachment = None
    if body.pdf_url:
        attachment = await sendgrid.fetch_attachment(body.pdf_url)

    payload = build_mail_payload(
        to=body.to,
        subject=body.subject,
        text_body=body.text_body or "",
        html_body=body.html_body,
        from_email=sendgrid.sender_email,
        from_name=sendgrid.sender_name,
        attachment_b64=attachment,
    )

    try:
        result = await sendgrid.send_mail(payload)
    except httpx.HTTPError as e:
        logger.error(f"SendGrid request failed: {type(e).__name__}: {e}")
        return _send_email_result(500, success=False, error=SEND_FAILED_ERROR)

    if not result.ok:
        return _send_email_result(500, success=False, error=SEND_FAILED_ERROR)

    logger.info(
        "Email sent to %s: subject=%r message_id=%s",
        sanitize_email(body.to),
        body.subject,
        result.message_id,
    )
    return _send_email_result(
        200, success=True, message_id=result.message_id or "unknown"
    )


def _test_bodies(recipient: str, from_email: str) -> tuple[str, str]:
    timestamp = datetime.now(timezone.utc).isoformat()
    text = (
        "SendGrid Test Email\n\n"
        f"This is a test email sent to: {recipient}\n\n"
        "If you receive this email, your eSignature email system is working correctly!\n\n"
        f"Timestamp: {timestamp}"
    )
    safe_recipient = html.escape(recipient)
    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #22c55e;">SendGrid Test Email</h2>
  <p>This is a test email sent to: <strong>{safe_recipient}</strong></p>
  <p><strong>If you receive this email, your eSignature email system is working correctly!</strong></p>
  <ul>
    <li>Timestamp: {timestamp}</li>
    <li>From: {html.escape(from_email)}</li>
    <li>Service: SendGrid API</li>
  </ul>
</div>
"""
    return text, html_body


def _sendgrid_error_detail(body: str) -> str:
    try:
        errors = json.loads(body).get("errors") or []
        if errors and errors[0].get("message"):
            return errors[0]["message"]
    except (ValueError, AttributeError):
        pass
    return body or "Unknown error"


@router.post("/test-email", response_model=TestEmailResponse)
async def test_email(
    request: Request,
    sendgrid: SendGridClient = Depends(get_sendgrid_client),
):
    test_address = None
    try:
        data = await request.json()
        if isinstance(data, dict):
            test_address = data.get("testEmail")
    except ValueError:
        pass

    recipient = test_address or sendgrid.from_email or "test@example.com"
    logger.info(
        "Test email requested: configured=%s recipient=%s",
        sendgrid.configured,
        sanitize_email(recipient),
    )

    if not sendgrid.configured:
        return JSONResponse(
            status_code=500,
            content=TestEmailResponse(
                success=False,
                error="SENDGRID_API_KEY not found",
                details="Add SENDGRID_API_KEY to the service environment",
            ).model_dump(exclude_none=True),
        )

    text_body, html_body = _test_bodies(recipient, sendgrid.sender_email)
    payload = build_mail_payload(
        to=recipient,
        subject="SendGrid Configuration Test",
        text_body=text_body,
        html_body=html_body,
        from_email=sendgrid.sender_email,
        from_name=sendgrid.from_name or TEST_FROM_NAME,
    )

    try:
        result = await sendgrid.send_mail(payload)
    except httpx.HTTPError as e:
        return JSONResponse(
            status_code=500,
            content=TestEmailResponse(
                success=False, error="Test function error", details=str(e)
            ).model_dump(exclude_none=True),
        )

    if result.ok:
        return TestEmailResponse(
            success=True,
            message="SendGrid configuration is working!",
            details={
                "apiKeyConfigured": True,
                "fromEmail": sendgrid.from_email or "using default",
                "fromName": sendgrid.from_name or "using default",
                "testRecipient": recipient,
                "sendGridStatus": result.status_code,
            },
        )

    suggestion = (
        "Check if your SendGrid API key is correct and has mail.send permissions"
        if result.status_code == 401
        else "Check SendGrid API documentation for this error"
    )
    return JSONResponse(
        status_code=500,
        content=TestEmailResponse(
            success=False,
            error="SendGrid API error",
            details={
                "status": result.status_code,
                "statusText": result.reason,
                "error": _sendgrid_error_detail(result.body),
                "suggestion": suggestion,
            },
        ).model_dump(exclude_none=True),
    )
