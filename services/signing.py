"""Recipient signing flow: open the request, fill fields, complete."""

import logging
from typing import Any, Mapping

from api.schemas import (
    CompletionResponse,
    SigningCredentials,
    SigningField,
    SigningRecipientInfo,
    SigningRequestInfo,
    SigningView,
)
from core.logging_utils import sanitize_token
from core.utils import is_uuid
from esign.core.config import STATUS_SIGNED
from esign.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from esign.database.repository import SignatureRepository
from esign.dispatch.links import token_matches
from esign.models.domain import FieldKind

logger = logging.getLogger(__name__)


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def field_from_row(row: Mapping[str, Any]) -> SigningField:
    return SigningField(
        id=str(row["id"]),
        type=row["type"],
        page_number=row["page_number"],
        x=row["x"],
        y=row["y"],
        width=row["width"],
        height=row["height"],
        value=row["value"],
        signed_at=_iso(row["signed_at"]),
    )


def missing_signatures(fields: list[SigningField]) -> list[SigningField]:
    return [f for f in fields if f.type == FieldKind.SIGNATURE.value and not f.value]


class SigningService:
    """Token-checked access to one recipient's part of a signature request."""

    def __init__(self, repository: SignatureRepository):
        self.repository = repository

    async def authorize(self, credentials: SigningCredentials):
        """Resolve the request and recipient and verify the signing token.

        Returns:
            (request_row, recipient_row)

        Raises:
            ResourceNotFoundError: Unknown request or recipient
            AuthenticationError: Token does not match any token sent to the recipient
        """
        if not is_uuid(credentials.request):
            raise ResourceNotFoundError("Signature request", credentials.request)
        if not is_uuid(credentials.recipient):
            raise ResourceNotFoundError("Recipient", credentials.recipient)

        request_row = await self.repository.get_request(credentials.request)
        if request_row is None:
            raise ResourceNotFoundError("Signature request", credentials.request)

        recipient_row = await self.repository.get_recipient(
            credentials.request, credentials.recipient
        )
        if recipient_row is None:
            raise ResourceNotFoundError("Recipient", credentials.recipient)

        hashes = await self.repository.get_token_hashes(credentials.recipient)
        if not any(token_matches(credentials.token, h) for h in hashes):
            logger.warning(
                "Signing token rejected: %s",
                sanitize_token(credentials.token),
                extra={
                    "request_id": credentials.request,
                    "recipient_id": credentials.recipient,
                },
            )
            raise AuthenticationError("Invalid signing token")

        return request_row, recipient_row

    async def _fields(self, credentials: SigningCredentials) -> list[SigningField]:
        rows = await self.repository.list_fields(
            credentials.request, credentials.recipient
        )
        return [field_from_row(row) for row in rows]

    async def get_view(self, credentials: SigningCredentials) -> SigningView:
        request_row, recipient_row = await self.authorize(credentials)
        fields = await self._fields(credentials)
        completed = sum(1 for f in fields if f.completed)

        return SigningView(
            request=SigningRequestInfo(
                id=str(request_row["id"]),
                title=request_row["title"],
                message=request_row["message"],
                document_url=request_row["document_url"],
                status=request_row["status"],
                sign_in_order=request_row["sign_in_order"],
            ),
            recipient=SigningRecipientInfo(
                id=str(recipient_row["id"]),
                email=recipient_row["email"],
                name=recipient_row["name"],
                role=recipient_row["role"],
                status=recipient_row["status"],
                signing_order_index=recipient_row["signing_order_index"],
            ),
            fields=fields,
            completed=completed,
            total=len(fields),
            can_complete=recipient_row["status"] != STATUS_SIGNED
            and not missing_signatures(fields),
        )

    async def update_field(
        self, field_id: str, credentials: SigningCredentials, value: str
    ) -> SigningField:
        """Store a value for one of the recipient's fields.

        Raises:
            ResourceNotFoundError: Field does not exist or belongs to someone else
            ConflictError: Recipient has already completed signing
        """
        _, recipient_row = await self.authorize(credentials)
        if recipient_row["status"] == STATUS_SIGNED:
            raise ConflictError("Recipient has already completed signing")
        if not is_uuid(field_id):
            raise ResourceNotFoundError("Field", field_id)

        row = await self.repository.update_field_value(
            field_id, credentials.recipient, value
        )
        if row is None:
            raise ResourceNotFoundError("Field", field_id)

        logger.info(
            "Field %s updated",
            field_id,
            extra={
                "request_id": credentials.request,
                "recipient_id": credentials.recipient,
            },
        )
        return field_from_row(row)

    async def complete(self, credentials: SigningCredentials) -> CompletionResponse:
        """Mark the recipient signed once every signature field has a value.

        Raises:
            ValidationError: A signature field is still empty
            ConflictError: Recipient has already completed signing
        """
        _, recipient_row = await self.authorize(credentials)
        if recipient_row["status"] == STATUS_SIGNED:
            raise ConflictError("Recipient has already completed signing")

        missing = missing_signatures(await self._fields(credentials))
        if missing:
            raise ValidationError(
                message="All signature fields must be completed",
                field="fields",
                details={"missing_field_ids": [f.id for f in missing]},
            )

        request_completed = await self.repository.complete_recipient(
            credentials.request, credentials.recipient
        )
        logger.info(
            "Recipient completed signing (request_completed=%s)",
            request_completed,
            extra={
                "request_id": credentials.request,
                "recipient_id": credentials.recipient,
            },
        )
        return CompletionResponse(
            recipient_status=STATUS_SIGNED, request_completed=request_completed
        )
