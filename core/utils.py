import uuid

from fastapi import Request


def ensure_trace_id(request: Request) -> str:
    """Return the request's trace_id, generating one if absent."""
    trace_id = getattr(request.state, "trace_id", None)
    if not trace_id:
        trace_id = str(uuid.uuid4())
        request.state.trace_id = trace_id
    return trace_id


def is_uuid(value: str) -> bool:
    """True when value parses as a UUID (any version)."""
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
