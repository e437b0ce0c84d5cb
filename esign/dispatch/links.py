"""Signing tokens and personalised signing links."""

import hashlib
import hmac
import secrets
from urllib.parse import urlencode

from esign.core.config import TOKEN_BYTES


def generate_token(nbytes: int = TOKEN_BYTES) -> str:
    """Return a single-use signing token from the OS CSPRNG (hex-encoded)."""
    return secrets.token_hex(nbytes)


def hash_token(token: str) -> str:
    """Digest stored in place of the token itself."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: str, token_hash: str) -> bool:
    return hmac.compare_digest(hash_token(token), token_hash)


def build_signing_url(base_url: str, request_id: str, recipient_id: str, token: str) -> str:
    """Build ``<base>?request=..&recipient=..&token=..``."""
    query = urlencode(
        {"request": request_id, "recipient": recipient_id, "token": token}
    )
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"
