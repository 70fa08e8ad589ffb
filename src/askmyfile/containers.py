"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from askmyfile.adapters.local_file_storage import LocalFileStorage
from askmyfile.adapters.smtp_email_sender import AioSmtpEmailSender
from askmyfile.adapters.supabase_document_repository import (
    SupabaseDocumentRepository,
)
from askmyfile.adapters.supabase_otp_repository import SupabaseOtpRepository
from askmyfile.adapters.supabase_query_history_repository import (
    SupabaseQueryHistoryRepository,
)
from askmyfile.adapters.upstream_client import (
    HttpxUpstreamClientFactory,
    UpstreamTimeouts,
)
from askmyfile.config import Settings
from askmyfile.services.documents import DocumentService
from askmyfile.services.gateway import GatewayService
from askmyfile.services.notifications import NotificationQueue
from askmyfile.services.otp import OtpService
from askmyfile.services.session_store import InMemorySessionStore, SessionStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_store: SessionStore
    gateway_service: GatewayService
    document_service: DocumentService
    otp_service: OtpService
    notification_queue: NotificationQueue
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    document_repository = SupabaseDocumentRepository(supabase_client)
    history_repository = SupabaseQueryHistoryRepository(supabase_client)
    otp_repository = SupabaseOtpRepository(supabase_client)
    file_storage = LocalFileStorage(Path(resolved_settings.upload_dir))

    session_store = InMemorySessionStore()
    client_factory = HttpxUpstreamClientFactory.create(
        base_url=resolved_settings.upstream_base_url,
        session_store=session_store,
        timeouts=UpstreamTimeouts(
            control=resolved_settings.upstream_control_timeout_seconds,
            transfer=resolved_settings.upstream_transfer_timeout_seconds,
        ),
    )
    gateway_service = GatewayService(
        client_factory=client_factory,
        document_repository=document_repository,
        history_repository=history_repository,
        file_storage=file_storage,
    )
    document_service = DocumentService(
        document_repository=document_repository,
        history_repository=history_repository,
        file_storage=file_storage,
    )
    notification_queue = NotificationQueue(
        sender=AioSmtpEmailSender(
            host=resolved_settings.smtp_host,
            port=resolved_settings.smtp_port,
            username=resolved_settings.smtp_username,
            password=resolved_settings.smtp_password,
            timeout_seconds=resolved_settings.smtp_timeout_seconds,
            from_name=resolved_settings.mail_from_name,
        ),
        max_attempts=resolved_settings.notification_max_attempts,
        timeout_seconds=resolved_settings.notification_timeout_seconds,
    )
    otp_service = OtpService(
        repository=otp_repository,
        notifier=notification_queue,
        ttl_seconds=resolved_settings.otp_ttl_seconds,
        max_failed_attempts=resolved_settings.otp_max_failed_attempts,
        brand=resolved_settings.mail_from_name,
    )

    async def close_resources() -> None:
        await notification_queue.stop()
        await client_factory.close()

    return AppContainer(
        settings=resolved_settings,
        session_store=session_store,
        gateway_service=gateway_service,
        document_service=document_service,
        otp_service=otp_service,
        notification_queue=notification_queue,
        close_resources=close_resources,
    )
