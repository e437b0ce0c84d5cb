"""
Centralized application settings using Pydantic.

All environment variables are read once at startup and validated.
Use this instead of scattered os.getenv() calls throughout the codebase.
"""

from pydantic import SecretStr
from pydantic_settings import BaseSettings


class DatabaseSettings(BaseSettings):
    """Database connection and pool configuration."""

    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "esign"
    DB_USER: str = "esign"
    DB_PASSWORD: SecretStr = SecretStr("")
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 10.0
    DB_COMMAND_TIMEOUT: float = 10.0

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class S3Settings(BaseSettings):
    """S3/MinIO storage for generated documents."""

    S3_ENDPOINT: str = "localhost:9000"
    S3_ACCESS_KEY: str = ""
    S3_SECRET_KEY: SecretStr = SecretStr("")
    S3_BUCKET: str = "signature-documents"
    S3_SECURE: bool = True
    S3_URL_EXPIRY_HOURS: int = 168

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class DeliverySettings(BaseSettings):
    """Send-email function used by the dispatch sequencer."""

    EMAIL_FUNCTION_URL: str = "http://localhost:8000/functions/v1/send-email"
    EMAIL_FUNCTION_TOKEN: SecretStr = SecretStr("")
    EMAIL_TIMEOUT_SECONDS: float = 15.0

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class SendGridSettings(BaseSettings):
    """SendGrid account used by the notification function endpoints."""

    SENDGRID_API_KEY: SecretStr | None = None
    SENDGRID_API_URL: str = "https://api.sendgrid.com/v3/mail/send"
    FROM_EMAIL: str | None = None
    FROM_NAME: str | None = None

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}


class AppSettings(BaseSettings):
    """General application settings."""

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    PUBLIC_APP_URL: str = "http://localhost:5173"
    API_BEARER_TOKEN: SecretStr = SecretStr("")

    model_config = {"case_sensitive": True, "env_file": ".env", "extra": "ignore"}

    @property
    def signing_url_base(self) -> str:
        """Base URL of the recipient signing view."""
        from esign.core.config import SIGNING_PATH

        return self.PUBLIC_APP_URL.rstrip("/") + SIGNING_PATH


# Singleton instances - loaded once at module import
db_settings = DatabaseSettings()
s3_settings = S3Settings()
delivery_settings = DeliverySettings()
sendgrid_settings = SendGridSettings()
app_settings = AppSettings()
