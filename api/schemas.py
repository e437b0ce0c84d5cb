"""Pydantic request/response schemas for API endpoints."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from esign.core.config import (
    MAX_EMAILS_PER_RECIPIENT,
    MAX_FIELDS,
    MAX_RECIPIENTS,
    MAX_SURFACE_PX,
    MESSAGE_MAX_LENGTH,
    NAME_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)
from esign.models.domain import FieldKind, RecipientRole


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See: https://www.rfc-editor.org/rfc/rfc7807
    """

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary of the problem")
    status: int = Field(..., description="HTTP status code for this problem")
    detail: Optional[str] = Field(
        None, description="Human-readable explanation specific to this occurrence"
    )
    instance: Optional[str] = Field(
        None,
        description="URI reference identifying this specific occurrence (e.g., request path)",
    )

    # Extension members (allowed by RFC 7807)
    code: str = Field(..., description="Application-specific error code")
    category: str = Field(
        ..., description="Error category (client_error, server_error, etc.)"
    )
    retryable: bool = Field(
        default=False, description="Whether the request can be retried"
    )
    trace_id: Optional[str] = Field(
        None, description="Distributed tracing ID for correlation across services"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "/errors/DEGENERATE_SURFACE",
                "title": "surface must have positive width and height, got 0.0x1131.0",
                "status": 422,
                "detail": "surface must have positive width and height, got 0.0x1131.0",
                "instance": "/v1/signature-requests",
                "code": "DEGENERATE_SURFACE",
                "category": "client_error",
                "retryable": False,
                "trace_id": "a1b2c3d4-e5f6-7890-abcd-ef1234567890",
            }
        }
    )


# =============================================================================
# Notification function endpoints
# =============================================================================


class SendEmailRequest(BaseModel):
    """Outbound notification request.

    Fields are optional at the schema level; the endpoint reports missing
    required fields with its own 400 response.
    """

    model_config = ConfigDict(populate_by_name=True)

    to: Optional[str] = None
    subject: Optional[str] = None
    html_body: Optional[str] = Field(None, alias="htmlBody")
    text_body: Optional[str] = Field(None, alias="textBody")
    pdf_url: Optional[str] = Field(None, alias="pdfUrl")


class SendEmailResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message_id: Optional[str] = Field(None, alias="messageId")
    error: Optional[str] = None


class TestEmailResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    details: Optional[Any] = None


# =============================================================================
# Signature requests
# =============================================================================


class RecipientIn(BaseModel):
    id: str = Field(..., min_length=1, max_length=100, description="Client-side id")
    name: Optional[str] = Field(None, max_length=NAME_MAX_LENGTH)
    emails: List[str] = Field(..., max_length=MAX_EMAILS_PER_RECIPIENT)
    role: RecipientRole = RecipientRole.SIGNER


class FieldIn(BaseModel):
    id: Optional[str] = Field(None, max_length=100)
    kind: FieldKind
    x: float = Field(..., allow_inf_nan=False, description="Pixels from surface left")
    y: float = Field(..., allow_inf_nan=False, description="Pixels from surface top")
    recipient_id: str = Field(..., min_length=1)


class SurfaceIn(BaseModel):
    """Pixel size of the live preview surface at capture time."""

    width: float = Field(..., allow_inf_nan=False, le=MAX_SURFACE_PX)
    height: float = Field(..., allow_inf_nan=False, le=MAX_SURFACE_PX)


class SignatureRequestCreate(BaseModel):
    title: str = Field(..., max_length=TITLE_MAX_LENGTH)
    message: Optional[str] = Field(None, max_length=MESSAGE_MAX_LENGTH)
    sign_in_order: bool = False
    document_name: Optional[str] = Field(None, max_length=TITLE_MAX_LENGTH)
    sender_name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    sender_email: EmailStr
    recipients: List[RecipientIn] = Field(..., max_length=MAX_RECIPIENTS)
    fields: List[FieldIn] = Field(default_factory=list, max_length=MAX_FIELDS)
    surface: SurfaceIn
    capture_base64: str = Field(
        ..., min_length=1, description="PNG/JPEG capture of the preview surface"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Consulting Agreement",
                "message": "Please sign by Friday.",
                "sign_in_order": True,
                "sender_name": "Jane Sender",
                "sender_email": "jane@example.com",
                "recipients": [
                    {"id": "r1", "name": "Alice", "emails": ["alice@example.com"], "role": "signer"},
                    {"id": "r2", "name": "Bob", "emails": ["bob@example.com"], "role": "cc"},
                ],
                "fields": [{"kind": "signature", "x": 100, "y": 50, "recipient_id": "r1"}],
                "surface": {"width": 800, "height": 1131},
                "capture_base64": "iVBORw0KGgo...",
            }
        }
    )


class SignatureRequestResponse(BaseModel):
    request_id: str
    success: bool
    sent_count: int
    attempted_count: int
    sent_emails: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    message: str


# =============================================================================
# Signing flow
# =============================================================================


class SigningCredentials(BaseModel):
    request: str = Field(..., min_length=1)
    recipient: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)


class FieldValueUpdate(SigningCredentials):
    value: str = Field(..., min_length=1)


class SigningField(BaseModel):
    id: str
    type: str
    page_number: int
    x: float
    y: float
    width: float
    height: float
    value: Optional[str] = None
    signed_at: Optional[str] = None

    @property
    def completed(self) -> bool:
        return bool(self.value and self.signed_at)


class SigningRequestInfo(BaseModel):
    id: str
    title: Optional[str] = None
    message: Optional[str] = None
    document_url: Optional[str] = None
    status: Optional[str] = None
    sign_in_order: bool = False


class SigningRecipientInfo(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    status: Optional[str] = None
    signing_order_index: Optional[int] = None


class SigningView(BaseModel):
    request: SigningRequestInfo
    recipient: SigningRecipientInfo
    fields: List[SigningField]
    completed: int
    total: int
    can_complete: bool


class CompletionResponse(BaseModel):
    recipient_status: str
    request_completed: bool


# =============================================================================
# Health
# =============================================================================


class DatabaseHealth(BaseModel):
    """Database connection status."""

    status: str = Field(..., description="Connection status (connected/disconnected)")
    latency_ms: float | None = Field(
        None, description="Connection latency in milliseconds"
    )
    error: str | None = Field(None, description="Error message if disconnected")


class HealthResponse(BaseModel):
    """System health status response."""

    status: str = Field(..., description="Overall system status (healthy/unhealthy)")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    database: DatabaseHealth = Field(..., description="Database connection status")
