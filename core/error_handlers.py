import logging

from api.schemas import ProblemDetail
from core.utils import ensure_trace_id
from esign.core.exceptions import BaseError, ErrorCategory
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic_core import ValidationError as PydanticCoreValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _problem_response(problem: ProblemDetail, trace_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        headers={"X-Trace-ID": trace_id},
    )


def _validation_problem(request: Request, detail: str, trace_id: str) -> ProblemDetail:
    return ProblemDetail(
        type="/errors/VALIDATION_ERROR",
        title="Request validation failed",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=detail,
        instance=request.url.path,
        code="VALIDATION_ERROR",
        category=ErrorCategory.CLIENT_ERROR.value,
        retryable=False,
        trace_id=trace_id,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Handler for FastAPI/Pydantic request validation errors."""
    trace_id = ensure_trace_id(request)

    errors = exc.errors()
    first_error = errors[0] if errors else {}
    loc = first_error.get("loc", [])
    field = ".".join(str(part) for part in loc if part not in ("body", "query"))
    msg = first_error.get("msg", "Validation failed")
    detail = f"{field}: {msg}" if field else msg

    logger.warning(
        f"Validation error: {detail}",
        extra={"trace_id": trace_id, "http_status": 422},
    )
    return _problem_response(_validation_problem(request, detail, trace_id), trace_id)


async def handle_pydantic_error(request: Request, exc: PydanticCoreValidationError):
    """Handler for Pydantic errors raised outside request parsing."""
    trace_id = ensure_trace_id(request)

    errors = exc.errors()
    msg = errors[0].get("msg", "Validation failed") if errors else "Validation failed"

    logger.warning(
        "Pydantic validation failed: %s",
        msg,
        extra={"trace_id": trace_id, "http_status": 422},
    )
    return _problem_response(_validation_problem(request, msg, trace_id), trace_id)


async def handle_app_error(request: Request, exc: BaseError):
    """Handler for application errors (validation, auth, stage failures)."""
    trace_id = ensure_trace_id(request)

    log_extra = {
        "trace_id": trace_id,
        "error_code": exc.error_code,
        "http_status": exc.http_status,
    }
    if "stage" in exc.details:
        log_extra["stage"] = exc.details["stage"]

    if exc.http_status >= 500:
        logger.error(f"Request failed: {exc.message}", extra=log_extra, exc_info=True)
    else:
        logger.warning(f"Request rejected: {exc.message}", extra=log_extra)

    problem = ProblemDetail(
        **exc.to_dict(),
        instance=request.url.path,
        trace_id=trace_id,
    )
    return _problem_response(problem, trace_id)


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    """Handler for standard HTTP exceptions (404, 405, 503...)."""
    trace_id = ensure_trace_id(request)

    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra={"trace_id": trace_id, "http_status": exc.status_code},
    )

    problem = ProblemDetail(
        type=f"/errors/HTTP_{exc.status_code}",
        title=str(exc.detail),
        status=exc.status_code,
        detail=str(exc.detail),
        code=f"HTTP_{exc.status_code}",
        category=(
            ErrorCategory.SERVER_ERROR.value
            if exc.status_code >= 500
            else ErrorCategory.CLIENT_ERROR.value
        ),
        retryable=exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE,
        instance=request.url.path,
        trace_id=trace_id,
    )
    return _problem_response(problem, trace_id)


async def handle_unknown_error(request: Request, exc: Exception):
    """Handler for unexpected 500 errors."""
    trace_id = ensure_trace_id(request)

    logger.exception(
        f"Unexpected {type(exc).__name__} on {request.url.path}",
        extra={"trace_id": trace_id, "http_status": 500},
    )

    problem = ProblemDetail(
        type="/errors/INTERNAL_SERVER_ERROR",
        title="Internal server error",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred. Please contact support with trace ID.",
        code="INTERNAL_SERVER_ERROR",
        category=ErrorCategory.SERVER_ERROR.value,
        retryable=False,
        instance=request.url.path,
        trace_id=trace_id,
    )
    return _problem_response(problem, trace_id)
