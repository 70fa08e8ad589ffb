"""Background email delivery queue.

Emails are enqueued by request handlers and delivered by a single worker task
with its own per-attempt timeout and bounded retries, so a slow or failing
mail server never blocks a request.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Protocol

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from askmyfile.domain.otp import EmailJob

logger = logging.getLogger(__name__)


class NotificationConfigError(RuntimeError):
    """Raised when the mail transport is not configured."""


class EmailSender(Protocol):
    """Delivers a single email."""

    async def send(self, job: EmailJob) -> None:
        """Send the email or raise on failure."""


class Notifier(Protocol):
    """Accepts emails for asynchronous delivery."""

    def enqueue(self, job: EmailJob) -> None:
        """Queue an email without waiting for delivery."""


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning(
        "Email delivery attempt %d failed, retrying: %s", state.attempt_number, error
    )


@dataclass
class NotificationQueue(Notifier):
    """In-process queue drained by one background worker."""

    sender: EmailSender
    max_attempts: int = 3
    timeout_seconds: float = 30.0
    backoff_min_seconds: float = 1.0
    backoff_max_seconds: float = 10.0
    _queue: asyncio.Queue[EmailJob] = field(default_factory=asyncio.Queue)
    _worker: asyncio.Task[None] | None = None

    def enqueue(self, job: EmailJob) -> None:
        """Queue an email without waiting for delivery."""
        self._queue.put_nowait(job)

    def start(self) -> None:
        """Start the worker task on the running event loop."""
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the worker; queued emails that were not sent are dropped."""
        if self._worker is None:
            return
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None

    async def drain(self) -> None:
        """Wait until every queued email has been processed."""
        await self._queue.join()

    async def deliver(self, job: EmailJob) -> bool:
        """Send one email with retries; return whether it was delivered."""
        retryer = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                min=self.backoff_min_seconds, max=self.backoff_max_seconds
            ),
            retry=retry_if_not_exception_type(NotificationConfigError),
            reraise=True,
            before_sleep=_log_retry,
        )
        try:
            async for attempt in retryer:
                with attempt:
                    await asyncio.wait_for(
                        self.sender.send(job), timeout=self.timeout_seconds
                    )
        except NotificationConfigError as exc:
            logger.error("Email to %s not sent: %s", job.to, exc)
            return False
        except Exception:
            logger.exception(
                "Email to %s not sent after %d attempts", job.to, self.max_attempts
            )
            return False
        logger.info("Email sent to %s", job.to)
        return True

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.deliver(job)
            finally:
                self._queue.task_done()
