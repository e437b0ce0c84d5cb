"""
Signing invitation email bodies.

HTML and plain-text variants carry the same information: document title and
file name, the sender, the optional personal message, the recipient's place
in the signing order (sequential mode only) and the signing link.
"""

from __future__ import annotations

from html import escape
from typing import Optional

from esign.models.dto import EmailTemplate, SignatureRequestPayload

_HTML_STYLE = """
      body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }
      .container { max-width: 600px; margin: 0 auto; padding: 20px; }
      .header { background: #f8f9fa; padding: 20px; border-radius: 8px; margin-bottom: 20px; }
      .document-info { background: #fff; border: 1px solid #e9ecef; border-radius: 8px; padding: 20px; margin: 20px 0; }
      .sign-button { display: inline-block; background: #007bff; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: 500; }
      .footer { margin-top: 30px; padding-top: 20px; border-top: 1px solid #e9ecef; font-size: 14px; color: #6c757d; }
      .order-info { background: #e3f2fd; padding: 15px; border-radius: 6px; margin: 15px 0; }
"""


def order_text(order_number: Optional[int]) -> str:
    """Describe the recipient's position in sequential signing."""
    if not order_number:
        return ""
    follow_up = (
        "You can sign immediately."
        if order_number == 1
        else "You will be notified when it's your turn to sign."
    )
    return f"You are recipient #{order_number} in the signing order. {follow_up}"


def _html_body(
    request: SignatureRequestPayload, signing_url: str, order_number: Optional[int]
) -> str:
    sender = f"{escape(request.sender_name)} ({escape(request.sender_email)})"
    message_block = (
        f'<p><strong>Message:</strong></p><p style="font-style: italic;">{escape(request.message)}</p>'
        if request.message
        else ""
    )
    order_block = (
        f'<div class="order-info"><p><strong>Signing Order:</strong> {escape(order_text(order_number))}</p></div>'
        if request.sign_in_order and order_number
        else ""
    )
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Signature Request</title>
    <style>{_HTML_STYLE}</style>
  </head>
  <body>
    <div class="container">
      <div class="header">
        <h1 style="margin: 0; color: #007bff;">Signature Request</h1>
        <p style="margin: 10px 0 0 0; color: #6c757d;">You have been requested to sign a document</p>
      </div>
      <p>Hello,</p>
      <p>You have received a signature request for the following document:</p>
      <div class="document-info">
        <h3 style="margin-top: 0;">{escape(request.title)}</h3>
        <p><strong>Document:</strong> {escape(request.document_name)}</p>
        <p><strong>From:</strong> {sender}</p>
        {message_block}
      </div>
      {order_block}
      <div style="text-align: center; margin: 30px 0;">
        <a href="{escape(signing_url, quote=True)}" class="sign-button">Review &amp; Sign Document</a>
      </div>
      <p><strong>What happens next?</strong></p>
      <ul>
        <li>Click the button above to review the document</li>
        <li>Add your signature where indicated</li>
        <li>Submit your signed document</li>
        <li>All parties will receive a copy once complete</li>
      </ul>
      <div class="footer">
        <p>If you have any questions about this document, please contact {sender}.</p>
        <p><small>This is an automated message. Please do not reply to this email.</small></p>
      </div>
    </div>
  </body>
</html>"""


def _text_body(
    request: SignatureRequestPayload, signing_url: str, order_number: Optional[int]
) -> str:
    lines = [
        f"Signature Request: {request.title}",
        "",
        "Hello,",
        "",
        "You have received a signature request for the following document:",
        "",
        f"Document: {request.title}",
        f"File: {request.document_name}",
        f"From: {request.sender_name} ({request.sender_email})",
    ]
    if request.message:
        lines += ["", f"Message: {request.message}"]
    if request.sign_in_order and order_number:
        lines += ["", f"Signing Order: {order_text(order_number)}"]
    lines += [
        "",
        "To review and sign the document, please visit:",
        signing_url,
        "",
        "What happens next?",
        "1. Click the link above to review the document",
        "2. Add your signature where indicated",
        "3. Submit your signed document",
        "4. All parties will receive a copy once complete",
        "",
        f"If you have any questions about this document, please contact "
        f"{request.sender_name} at {request.sender_email}.",
    ]
    return "\n".join(lines)


def build_email_template(
    request: SignatureRequestPayload,
    signing_url: str,
    order_number: Optional[int] = None,
) -> EmailTemplate:
    return EmailTemplate(
        subject=f"Signature Request: {request.title}",
        html_body=_html_body(request, signing_url, order_number),
        text_body=_text_body(request, signing_url, order_number),
    )
