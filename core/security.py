"""Bearer credential check for the notification function endpoints."""

import hmac
import logging
from typing import Optional

from core.settings import app_settings
from esign.core.exceptions import AuthenticationError
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _expected_token() -> str:
    return app_settings.API_BEARER_TOKEN.get_secret_value()


async def require_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> None:
    """Reject the request unless it carries the configured bearer token.

    Raises:
        AuthenticationError: Header missing, wrong scheme or wrong token
    """
    expected = _expected_token()
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    if not expected or not hmac.compare_digest(
        credentials.credentials.encode(), expected.encode()
    ):
        logger.warning("Rejected request with invalid bearer token")
        raise AuthenticationError("Invalid bearer token")
