"""Shared pytest configuration.

Settings singletons read the environment at import time, so test values are
set here before any application module is imported.
"""

import os

os.environ.setdefault("API_BEARER_TOKEN", "test-api-token")
os.environ.setdefault("EMAIL_FUNCTION_TOKEN", "test-function-token")
os.environ.setdefault("PUBLIC_APP_URL", "https://sign.example.com")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from esign.models.dto import SignatureRequestPayload


@pytest.fixture
def payload() -> SignatureRequestPayload:
    return SignatureRequestPayload(
        title="Consulting Agreement",
        message="Please sign by Friday.",
        sign_in_order=True,
        document_name="Consulting_Agreement.pdf",
        sender_name="Jane Sender",
        sender_email="jane@example.com",
    )
