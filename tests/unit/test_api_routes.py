"""HTTP-level tests for health, signature request and signing routes."""

from unittest.mock import AsyncMock

import pytest
from api.schemas import (
    CompletionResponse,
    SignatureRequestResponse,
)
from core.dependencies import (
    get_db_manager,
    get_signature_request_service,
    get_signing_service,
)
from esign.core.exceptions import AuthenticationError, StageError
from fastapi.testclient import TestClient
from main import app


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def request_body() -> dict:
    return {
        "title": "Agreement",
        "sender_name": "Jane",
        "sender_email": "jane@example.com",
        "recipients": [{"id": "c1", "emails": ["a@example.com"]}],
        "fields": [{"kind": "signature", "x": 1, "y": 2, "recipient_id": "c1"}],
        "surface": {"width": 800, "height": 1131},
        "capture_base64": "aGVsbG8=",
    }


class TestHealth:
    """Tests for GET /health."""

    def test_healthy(self, client):
        """Test a reachable database reports healthy."""
        db = AsyncMock()
        db.health_check.return_value = {"healthy": True, "error": None, "latency_ms": 1.2}
        app.dependency_overrides[get_db_manager] = lambda: db

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"]["status"] == "connected"

    def test_unhealthy(self, client):
        """Test an unreachable database gives 503."""
        db = AsyncMock()
        db.health_check.return_value = {"healthy": False, "error": "down", "latency_ms": None}
        app.dependency_overrides[get_db_manager] = lambda: db

        assert client.get("/health").status_code == 503

    def test_no_pool(self, client):
        """Test a missing pool is reported as 503 problem detail."""
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["code"] == "HTTP_503"
        assert "X-Trace-ID" in response.headers


class TestSignatureRequestRoute:
    """Tests for POST /v1/signature-requests."""

    def test_returns_report(self, client):
        """Test the service response is passed through."""
        service = AsyncMock()
        service.create.return_value = SignatureRequestResponse(
            request_id="r",
            success=False,
            sent_count=1,
            attempted_count=2,
            sent_emails=["a@example.com"],
            errors=["Failed to send to b@example.com: HTTP 500"],
            message="1 of 2 emails sent",
        )
        app.dependency_overrides[get_signature_request_service] = lambda: service

        response = client.post("/v1/signature-requests", json=request_body())

        assert response.status_code == 200
        assert response.json()["attempted_count"] == 2
        assert response.json()["success"] is False

    def test_stage_error_is_problem_detail(self, client):
        """Test a stage failure is returned as RFC 7807."""
        service = AsyncMock()
        service.create.side_effect = StageError("storage", "minio down")
        app.dependency_overrides[get_signature_request_service] = lambda: service

        response = client.post("/v1/signature-requests", json=request_body())

        assert response.status_code == 502
        body = response.json()
        assert body["code"] == "STORAGE_FAILED"
        assert body["instance"] == "/v1/signature-requests"

    def test_invalid_sender_email(self, client):
        """Test schema validation errors give 422 problem detail."""
        app.dependency_overrides[get_signature_request_service] = lambda: AsyncMock()
        body = {**request_body(), "sender_email": "nope"}

        response = client.post("/v1/signature-requests", json=body)

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert response.json()["detail"].startswith("sender_email")


class TestSigningRoutes:
    """Tests for /v1/sign endpoints."""

    def test_bad_token(self, client):
        """Test an invalid token gives 401."""
        service = AsyncMock()
        service.get_view.side_effect = AuthenticationError("Invalid signing token")
        app.dependency_overrides[get_signing_service] = lambda: service

        response = client.get("/v1/sign", params={"request": "a", "recipient": "b", "token": "c"})

        assert response.status_code == 401
        assert response.json()["title"] == "Invalid signing token"

    def test_missing_query(self, client):
        """Test missing credentials are a validation error."""
        app.dependency_overrides[get_signing_service] = lambda: AsyncMock()
        assert client.get("/v1/sign", params={"request": "a"}).status_code == 422

    def test_complete(self, client):
        """Test completion passes credentials to the service."""
        service = AsyncMock()
        service.complete.return_value = CompletionResponse(
            recipient_status="signed", request_completed=False
        )
        app.dependency_overrides[get_signing_service] = lambda: service

        response = client.post(
            "/v1/sign/complete", json={"request": "a", "recipient": "b", "token": "c"}
        )

        assert response.status_code == 200
        assert response.json() == {"recipient_status": "signed", "request_completed": False}
        assert service.complete.await_args.args[0].token == "c"
