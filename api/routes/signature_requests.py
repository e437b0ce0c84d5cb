"""Signature request creation endpoint."""

import logging

from api.schemas import ProblemDetail, SignatureRequestCreate, SignatureRequestResponse
from core.dependencies import get_signature_request_service
from fastapi import APIRouter, Depends, Request
from services.signature_requests import SignatureRequestService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/v1/signature-requests",
    response_model=SignatureRequestResponse,
    tags=["signature-requests"],
    responses={
        422: {"description": "Validation Error", "model": ProblemDetail},
        500: {"description": "Rendering or persistence failed", "model": ProblemDetail},
        502: {"description": "Document storage failed", "model": ProblemDetail},
    },
)
async def create_signature_request(
    request: Request,
    body: SignatureRequestCreate,
    service: SignatureRequestService = Depends(get_signature_request_service),
):
    trace_id = getattr(request.state, "trace_id", None)
    logger.info(
        "[NEW SIGNATURE REQUEST] recipients=%d fields=%d sequential=%s",
        len(body.recipients),
        len(body.fields),
        body.sign_in_order,
        extra={"trace_id": trace_id},
    )
    return await service.create(body)
