"""Startup checks for settings the signing flow cannot run without.

Settings classes hold values; this module decides whether they are usable.
"""

import logging
import re

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"^https?://.+")

# MinIO rejects presigned URLs valid for longer than seven days.
MAX_PRESIGNED_HOURS = 7 * 24


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_settings(required: list[tuple[object, str, str]]) -> list[str]:
    """List ``(value, name, purpose)`` entries whose value is blank."""
    return [
        f"  - {name} (required for {purpose})"
        for value, name, purpose in required
        if _is_blank(value)
    ]


def invalid_urls(urls: list[tuple[str, str]]) -> list[str]:
    return [
        f"  - {name}={url} (must start with http:// or https://)"
        for url, name in urls
        if url and not URL_PATTERN.match(url)
    ]


def range_problems(db_settings, s3_settings, delivery_settings) -> list[str]:
    problems = []
    if not 1 <= db_settings.DB_PORT <= 65535:
        problems.append(f"  - DB_PORT must be 1-65535, got {db_settings.DB_PORT}")
    if db_settings.DB_POOL_MIN_SIZE > db_settings.DB_POOL_MAX_SIZE:
        problems.append(
            f"  - DB_POOL_MIN_SIZE ({db_settings.DB_POOL_MIN_SIZE}) "
            f"cannot exceed DB_POOL_MAX_SIZE ({db_settings.DB_POOL_MAX_SIZE})"
        )
    if not 1 <= s3_settings.S3_URL_EXPIRY_HOURS <= MAX_PRESIGNED_HOURS:
        problems.append(
            f"  - S3_URL_EXPIRY_HOURS must be 1-{MAX_PRESIGNED_HOURS}, "
            f"got {s3_settings.S3_URL_EXPIRY_HOURS}"
        )
    if delivery_settings.EMAIL_TIMEOUT_SECONDS <= 0:
        problems.append(
            f"  - EMAIL_TIMEOUT_SECONDS must be positive, "
            f"got {delivery_settings.EMAIL_TIMEOUT_SECONDS}"
        )
    return problems


def _fail(heading: str, problems: list[str]) -> None:
    error_msg = heading + "\n" + "\n".join(problems)
    logger.error(error_msg)
    raise RuntimeError(error_msg)


def validate_all_settings() -> None:
    """Validate critical settings before the app starts serving.

    The SendGrid key is not checked here: the notification endpoints
    report a missing key to their caller instead.

    Raises:
        RuntimeError: If any critical setting is missing or invalid
    """
    from core.settings import (
        app_settings,
        db_settings,
        delivery_settings,
        s3_settings,
    )

    missing = missing_settings(
        [
            (db_settings.DB_HOST, "DB_HOST", "Database connection"),
            (db_settings.DB_NAME, "DB_NAME", "Database connection"),
            (db_settings.DB_USER, "DB_USER", "Database connection"),
            (s3_settings.S3_ENDPOINT, "S3_ENDPOINT", "Document storage"),
            (s3_settings.S3_BUCKET, "S3_BUCKET", "Document storage"),
            (delivery_settings.EMAIL_FUNCTION_URL, "EMAIL_FUNCTION_URL", "Email delivery"),
            (app_settings.PUBLIC_APP_URL, "PUBLIC_APP_URL", "Signing links"),
            (
                app_settings.API_BEARER_TOKEN.get_secret_value(),
                "API_BEARER_TOKEN",
                "Notification endpoints",
            ),
        ]
    )
    if missing:
        _fail(
            "Missing critical environment variables:",
            missing + ["", "Please check your .env file or environment configuration."],
        )

    bad_urls = invalid_urls(
        [
            (delivery_settings.EMAIL_FUNCTION_URL, "EMAIL_FUNCTION_URL"),
            (app_settings.PUBLIC_APP_URL, "PUBLIC_APP_URL"),
        ]
    )
    if bad_urls:
        _fail("Invalid URL formats:", bad_urls)

    out_of_range = range_problems(db_settings, s3_settings, delivery_settings)
    if out_of_range:
        _fail("Invalid settings:", out_of_range)

    logger.info(
        "Settings validated: db=%s:%s/%s s3=%s/%s email=%s signing=%s",
        db_settings.DB_HOST,
        db_settings.DB_PORT,
        db_settings.DB_NAME,
        s3_settings.S3_ENDPOINT,
        s3_settings.S3_BUCKET,
        delivery_settings.EMAIL_FUNCTION_URL,
        app_settings.signing_url_base,
    )
