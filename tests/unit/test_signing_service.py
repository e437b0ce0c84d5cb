"""Unit tests for the recipient signing flow."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from api.schemas import SigningCredentials
from esign.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from esign.dispatch.links import hash_token
from services.signing import SigningService

REQUEST_ID = str(uuid.uuid4())
RECIPIENT_ID = str(uuid.uuid4())
TOKEN = "a" * 64


def field_row(kind: str = "signature", value: str | None = None) -> dict:
    return {
        "id": uuid.uuid4(),
        "type": kind,
        "page_number": 1,
        "x": 26.25,
        "y": 13.1,
        "width": 60.0,
        "height": 15.0,
        "value": value,
        "signed_at": datetime(2026, 1, 1, tzinfo=timezone.utc) if value else None,
    }


def recipient_row(status: str = "pending") -> dict:
    return {
        "id": uuid.UUID(RECIPIENT_ID),
        "email": "alice@example.com",
        "name": "Alice",
        "role": "signer",
        "status": status,
        "signing_order_index": 0,
    }


@pytest.fixture
def repository() -> AsyncMock:
    repo = AsyncMock()
    repo.get_request.return_value = {
        "id": uuid.UUID(REQUEST_ID),
        "title": "Agreement",
        "message": None,
        "document_url": "https://s3/doc.pdf",
        "status": "pending",
        "sign_in_order": True,
    }
    repo.get_recipient.return_value = recipient_row()
    repo.get_token_hashes.return_value = [hash_token(TOKEN)]
    repo.list_fields.return_value = [field_row(), field_row("date", "2026-01-01")]
    return repo


def creds(token: str = TOKEN, request: str = REQUEST_ID) -> SigningCredentials:
    return SigningCredentials(request=request, recipient=RECIPIENT_ID, token=token)


class TestAuthorize:
    """Tests for token and identifier checks."""

    @pytest.mark.asyncio
    async def test_bad_token(self, repository):
        """Test a token that was never sent is rejected."""
        with pytest.raises(AuthenticationError):
            await SigningService(repository).get_view(creds(token="b" * 64))

    @pytest.mark.asyncio
    async def test_unknown_request(self, repository):
        """Test a missing request is not found."""
        repository.get_request.return_value = None
        with pytest.raises(ResourceNotFoundError):
            await SigningService(repository).get_view(creds())

    @pytest.mark.asyncio
    async def test_malformed_request_id(self, repository):
        """Test a non-UUID id is not found without querying."""
        with pytest.raises(ResourceNotFoundError):
            await SigningService(repository).get_view(creds(request="not-a-uuid"))
        repository.get_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_recipient(self, repository):
        """Test a recipient outside the request is not found."""
        repository.get_recipient.return_value = None
        with pytest.raises(ResourceNotFoundError):
            await SigningService(repository).get_view(creds())


class TestSigningView:
    """Tests for the signing view."""

    @pytest.mark.asyncio
    async def test_progress(self, repository):
        """Test completed/total counts and completion flag."""
        view = await SigningService(repository).get_view(creds())

        assert view.request.title == "Agreement"
        assert view.recipient.email == "alice@example.com"
        assert view.total == 2
        assert view.completed == 1
        assert view.can_complete is False


class TestUpdateField:
    """Tests for filling a field."""

    @pytest.mark.asyncio
    async def test_updates_owned_field(self, repository):
        """Test the stored value is returned."""
        repository.update_field_value.return_value = field_row(value="Alice")
        field_id = str(uuid.uuid4())

        field = await SigningService(repository).update_field(field_id, creds(), "Alice")

        assert field.value == "Alice"
        repository.update_field_value.assert_awaited_once_with(
            field_id, RECIPIENT_ID, "Alice"
        )

    @pytest.mark.asyncio
    async def test_field_of_someone_else(self, repository):
        """Test a field not owned by the recipient is not found."""
        repository.update_field_value.return_value = None
        with pytest.raises(ResourceNotFoundError):
            await SigningService(repository).update_field(
                str(uuid.uuid4()), creds(), "x"
            )

    @pytest.mark.asyncio
    async def test_already_signed(self, repository):
        """Test fields are frozen after completion."""
        repository.get_recipient.return_value = recipient_row("signed")
        with pytest.raises(ConflictError):
            await SigningService(repository).update_field(
                str(uuid.uuid4()), creds(), "x"
            )


class TestComplete:
    """Tests for completing signing."""

    @pytest.mark.asyncio
    async def test_requires_signature_fields(self, repository):
        """Test completion fails while a signature field is empty."""
        with pytest.raises(ValidationError):
            await SigningService(repository).complete(creds())
        repository.complete_recipient.assert_not_called()

    @pytest.mark.asyncio
    async def test_completes_request_when_last_signer(self, repository):
        """Test the request completes once every recipient signed."""
        repository.list_fields.return_value = [field_row(value="Alice")]
        repository.complete_recipient.return_value = True

        result = await SigningService(repository).complete(creds())

        assert result.recipient_status == "signed"
        assert result.request_completed is True
        repository.complete_recipient.assert_awaited_once_with(REQUEST_ID, RECIPIENT_ID)
