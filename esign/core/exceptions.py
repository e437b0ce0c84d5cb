"""Exception hierarchy for the e-signature service.

All HTTP-facing exceptions inherit from BaseError and provide structured error
information compatible with RFC 7807 Problem Details for HTTP APIs.
Delivery exceptions at the bottom of the module are raised by notification
clients and consumed by the dispatch sequencer; they never reach the API layer.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Error categories for classification and monitoring."""

    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"


class BaseError(Exception):
    """Base exception for all service errors.

    Attributes:
        message: Human-readable error message
        error_code: Application-specific error code
        category: Error category for classification
        http_status: HTTP status code to return
        details: Additional context (dict)
        retryable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        category: ErrorCategory,
        http_status: int,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.http_status = http_status
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to RFC 7807 Problem Details format."""
        return {
            "type": f"/errors/{self.error_code}",
            "title": self.message,
            "status": self.http_status,
            "code": self.error_code,
            "detail": self.details.get("detail"),
            "category": self.category.value,
            "retryable": self.retryable,
        }


class ClientError(BaseError):
    """Base for client errors (4xx). Not retryable."""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.CLIENT_ERROR,
            http_status=kwargs.pop("http_status", 400),
            retryable=False,
            **kwargs,
        )


class ValidationError(ClientError):
    """Input validation failed (422 Unprocessable Entity).

    Args:
        message: Validation error description
        field: Name of the field that failed validation
        details: Additional validation context
    """

    def __init__(self, message: str, field: str, **kwargs):
        additional_details = kwargs.pop("details", {})
        additional_details["field"] = field
        additional_details.setdefault("detail", message)
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", "VALIDATION_ERROR"),
            http_status=422,
            details=additional_details,
            **kwargs,
        )
        self.field = field


class DegenerateSurfaceError(ValidationError):
    """Raised when a preview surface or capture has no area.

    Mapping onto such a surface would divide by zero, so the mapper refuses
    instead of returning NaN or infinite positions.
    """

    def __init__(self, field: str, width: float, height: float):
        super().__init__(
            message=f"{field} must have positive width and height, got {width}x{height}",
            field=field,
            error_code="DEGENERATE_SURFACE",
            details={"width": width, "height": height},
        )


class AuthenticationError(ClientError):
    """Missing or invalid credential (401)."""

    def __init__(self, message: str = "Invalid or missing credentials"):
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            http_status=401,
        )


class ResourceNotFoundError(ClientError):
    """Resource not found (404).

    Args:
        resource_type: Type of resource (e.g., "Signature request", "Field")
        resource_id: Identifier of the missing resource
    """

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            message=f"{resource_type} not found",
            error_code="RESOURCE_NOT_FOUND",
            http_status=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ConflictError(ClientError):
    """Operation not allowed in the current state (409)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", "CONFLICT"),
            http_status=409,
            **kwargs,
        )


class ServerError(BaseError):
    """Base for server errors (5xx)."""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.SERVER_ERROR,
            http_status=kwargs.pop("http_status", 500),
            retryable=kwargs.pop("retryable", False),
            **kwargs,
        )


class StageError(ServerError):
    """Whole-run failure of a signature request stage.

    The stage name (rendering, storage, persistence) is kept in the
    error code so the caller sees which step aborted the run.
    """

    def __init__(self, stage: str, reason: str):
        super().__init__(
            message=f"Signature request failed during {stage}",
            error_code=f"{stage.upper()}_FAILED",
            http_status=502 if stage == "storage" else 500,
            retryable=True,
            details={"stage": stage, "detail": reason},
        )
        self.stage = stage
        self.reason = reason


# =============================================================================
# Delivery channel errors
# =============================================================================


class DeliveryError(Exception):
    """A single notification could not be delivered."""


class DeliveryUnavailableError(DeliveryError):
    """The delivery channel as a whole is unreachable or unconfigured."""
