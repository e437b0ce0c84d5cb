"""Request tracing and access logging middleware."""

import logging
import time

from core.utils import ensure_trace_id
from fastapi import Request

logger = logging.getLogger("esign.access")


async def trace_id_middleware(request: Request, call_next):
    """Attach a trace ID to every request and log its duration."""
    incoming = request.headers.get("X-Trace-ID")
    if incoming:
        request.state.trace_id = incoming[:64]
    trace_id = ensure_trace_id(request)

    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000, 2)

    response.headers["X-Trace-ID"] = trace_id
    logger.info(
        "%s %s -> %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={
            "trace_id": trace_id,
            "http_status": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response
