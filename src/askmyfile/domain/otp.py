"""One-time code domain models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class OtpRecord:
    """Stored one-time code for an email address."""

    email: str
    code: str
    expires_at: datetime
    failed_attempts: int = 0


@dataclass(frozen=True)
class EmailJob:
    """Email waiting to be delivered by the notification worker."""

    to: str
    subject: str
    html: str
    text: str | None = None
