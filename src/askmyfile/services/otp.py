"""One-time code issuing and checking."""

import re
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from askmyfile.domain.errors import bad_request
from askmyfile.domain.otp import EmailJob, OtpRecord
from askmyfile.services.notifications import Notifier

_EMAIL_PATTERN = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")
CODE_LENGTH = 6
MAX_FAILED_ATTEMPTS = 5


class OtpRepository(Protocol):
    """Persistence interface for one-time codes."""

    def save_otp(self, email: str, code: str, expires_at: datetime) -> OtpRecord:
        """Store the code for an email, replacing any previous one."""

    def get_otp(self, email: str) -> OtpRecord | None:
        """Return the current code for an email, if present."""

    def record_failed_attempt(self, email: str, failed_attempts: int) -> None:
        """Store how many wrong codes have been tried for an email."""

    def delete_otp(self, email: str) -> None:
        """Delete the code for an email."""


@dataclass
class OtpService:
    """Issues codes and hands their emails to the notification queue."""

    repository: OtpRepository
    notifier: Notifier
    ttl_seconds: int = 300
    max_failed_attempts: int = MAX_FAILED_ATTEMPTS
    brand: str = "AskMyFile"

    def issue_code(self, email: str) -> OtpRecord:
        """Store a fresh code and queue its email without waiting for delivery."""
        normalized = _normalize_email(email)
        code = f"{secrets.randbelow(10**CODE_LENGTH):0{CODE_LENGTH}d}"
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=self.ttl_seconds)
        record = self.repository.save_otp(normalized, code, expires_at)
        self.notifier.enqueue(self._build_email(record))
        return record

    def verify_code(self, email: str, code: str) -> bool:
        """Return True and consume the code when it matches and has not expired.

        A code is discarded once it has been guessed wrong too many times.
        """
        normalized = _normalize_email(email)
        record = self.repository.get_otp(normalized)
        if record is None or record.expires_at <= datetime.now(tz=UTC):
            return False
        if not secrets.compare_digest(record.code.encode(), code.strip().encode()):
            failed_attempts = record.failed_attempts + 1
            if failed_attempts >= self.max_failed_attempts:
                self.repository.delete_otp(normalized)
            else:
                self.repository.record_failed_attempt(normalized, failed_attempts)
            return False
        self.repository.delete_otp(normalized)
        return True

    def _build_email(self, record: OtpRecord) -> EmailJob:
        minutes = max(1, self.ttl_seconds // 60)
        html = (
            '<div style="font-family: Arial, sans-serif; max-width: 600px; '
            'margin: 0 auto;">'
            '<h2 style="color: #333;">Your OTP Code</h2>'
            f"<p>Your One-Time Password (OTP) for {self.brand} is:</p>"
            '<div style="background-color: #f4f4f4; padding: 20px; '
            'text-align: center; margin: 20px 0;">'
            '<h1 style="color: #007bff; font-size: 32px; margin: 0; '
            f'letter-spacing: 5px;">{record.code}</h1></div>'
            f"<p>This OTP is valid for <strong>{minutes} minutes</strong>.</p>"
            '<p style="color: #666; font-size: 12px;">If you didn\'t request '
            "this OTP, please ignore this email.</p></div>"
        )
        return EmailJob(
            to=record.email,
            subject="Your OTP Code",
            html=html,
            text=f"Your OTP is {record.code} (valid for {minutes} minutes)",
        )


def _normalize_email(email: str) -> str:
    normalized = email.strip().lower()
    if not _EMAIL_PATTERN.match(normalized):
        raise bad_request("Invalid email")
    return normalized
