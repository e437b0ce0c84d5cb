"""
PII-safe logging utilities.

Provides minimal sanitization helpers to prevent sensitive data
leakage in logs while keeping them useful for debugging.
"""


def sanitize_email(email: str | None) -> str:
    """
    Sanitize an email address for logs.

    Rules:
    - None / empty / no "@" → fully masked
    - Otherwise → first char of the local part, masked rest, domain kept
    """
    if not email or "@" not in email:
        return "***"

    local, _, domain = email.strip().rpartition("@")
    if not local:
        return f"***@{domain}"

    return f"{local[0]}***@{domain}"


def sanitize_token(token: str | None) -> str:
    """
    Sanitize a signing token for logs.

    Rules:
    - None / too short → fully masked
    - Otherwise → first 4 chars, rest masked
    """
    if not token or len(token) < 8:
        return "***"

    return f"{token[:4]}***"
