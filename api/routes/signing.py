"""Recipient signing endpoints, authorised by the token from the invitation link."""

from api.schemas import (
    CompletionResponse,
    FieldValueUpdate,
    ProblemDetail,
    SigningCredentials,
    SigningField,
    SigningView,
)
from core.dependencies import get_signing_service
from fastapi import APIRouter, Depends, Query
from services.signing import SigningService

router = APIRouter(
    prefix="/v1/sign",
    tags=["signing"],
    responses={
        401: {"description": "Invalid signing token", "model": ProblemDetail},
        404: {"description": "Unknown request, recipient or field", "model": ProblemDetail},
    },
)


@router.get("", response_model=SigningView)
async def open_signing_view(
    request: str = Query(..., min_length=1),
    recipient: str = Query(..., min_length=1),
    token: str = Query(..., min_length=1),
    service: SigningService = Depends(get_signing_service),
):
    credentials = SigningCredentials(request=request, recipient=recipient, token=token)
    return await service.get_view(credentials)


@router.put("/fields/{field_id}", response_model=SigningField)
async def update_field(
    field_id: str,
    body: FieldValueUpdate,
    service: SigningService = Depends(get_signing_service),
):
    return await service.update_field(field_id, body, body.value)


@router.post(
    "/complete",
    response_model=CompletionResponse,
    responses={409: {"description": "Already signed", "model": ProblemDetail}},
)
async def complete_signing(
    body: SigningCredentials,
    service: SigningService = Depends(get_signing_service),
):
    return await service.complete(body)
