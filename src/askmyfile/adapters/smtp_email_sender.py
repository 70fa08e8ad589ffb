"""SMTP email sender backed by aiosmtplib."""

import re
from dataclasses import dataclass
from email.message import EmailMessage

import aiosmtplib

from askmyfile.domain.otp import EmailJob
from askmyfile.services.notifications import EmailSender, NotificationConfigError


def _html_to_text(html: str) -> str:
    text = re.sub(r"<[^>]+>", " ", html)
    return re.sub(r"\s+", " ", text).strip()


@dataclass
class AioSmtpEmailSender(EmailSender):
    """Sends email over SMTP with STARTTLS."""

    host: str
    port: int
    username: str | None
    password: str | None
    timeout_seconds: float = 10.0
    from_name: str = "AskMyFile"

    def build_message(self, job: EmailJob) -> EmailMessage:
        """Build a multipart text and HTML message for a job."""
        message = EmailMessage()
        message["From"] = f'"{self.from_name}" <{self.username}>'
        message["To"] = job.to
        message["Subject"] = job.subject
        message.set_content(job.text or _html_to_text(job.html))
        message.add_alternative(job.html, subtype="html")
        return message

    async def send(self, job: EmailJob) -> None:
        """Send the email; raises NotificationConfigError without credentials."""
        if not self.username or not self.password:
            raise NotificationConfigError(
                "Email configuration missing: SMTP username and password must be set"
            )
        await aiosmtplib.send(
            self.build_message(job),
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=True,
            timeout=self.timeout_seconds,
        )
