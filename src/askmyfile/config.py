"""Application configuration."""

import logging
import os

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

# macOS AirPlay Receiver listens on localhost:5000 and answers with 403.
_HIJACKED_HOST = "localhost:5000"
_LOOPBACK_HOST = "127.0.0.1:5000"

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    upstream_base_url: str = f"http://{_LOOPBACK_HOST}"
    upstream_control_timeout_seconds: float = 60.0
    upstream_transfer_timeout_seconds: float = 120.0
    upload_dir: str = "uploads"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_timeout_seconds: float = 10.0
    mail_from_name: str = "AskMyFile"
    notification_max_attempts: int = 3
    notification_timeout_seconds: float = 30.0
    otp_ttl_seconds: int = 300
    otp_max_failed_attempts: int = 5
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @field_validator("upstream_base_url")
    @classmethod
    def _normalize_upstream(cls, value: str) -> str:
        return normalize_upstream_url(value)


def normalize_upstream_url(raw: str) -> str:
    """Rewrite localhost:5000 to the loopback address and drop trailing slashes."""
    url = raw.strip().rstrip("/")
    if _HIJACKED_HOST in url:
        logger.warning(
            "%s detected in upstream URL, using %s to avoid the macOS "
            "AirPlay Receiver port conflict",
            _HIJACKED_HOST,
            _LOOPBACK_HOST,
        )
        url = url.replace(_HIJACKED_HOST, _LOOPBACK_HOST)
    return url
