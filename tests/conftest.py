"""Shared test fixtures."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import parse_qs
from uuid import UUID, uuid4

import httpx
import pytest

from askmyfile.adapters.upstream_client import (
    HttpxUpstreamClientFactory,
    UpstreamClient,
    UpstreamClientFactory,
    UpstreamTimeouts,
)
from askmyfile.config import Settings
from askmyfile.containers import AppContainer
from askmyfile.domain.documents import DocumentRecord, QueryRecord, StoredFile
from askmyfile.domain.otp import EmailJob, OtpRecord
from askmyfile.services.documents import (
    DocumentRepository,
    DocumentService,
    FileStorage,
    QueryHistoryRepository,
)
from askmyfile.services.gateway import GatewayService
from askmyfile.services.notifications import EmailSender, NotificationQueue, Notifier
from askmyfile.services.otp import OtpRepository, OtpService
from askmyfile.services.session_store import InMemorySessionStore

UPSTREAM_URL = "http://upstream.test"

Responder = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


@dataclass
class FakeUpstream:
    """Scripted processing service that records every request it receives."""

    routes: dict[str, Responder] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get(request.url.path)
        if responder is None:
            return httpx.Response(404, json={"message": "Unknown route"})
        response = responder(request)
        if isinstance(response, httpx.Response):
            return response
        return await response

    def cookies_sent(self) -> list[str | None]:
        return [request.headers.get("cookie") for request in self.requests]


def form_field(request: httpx.Request, name: str) -> str:
    """Return a field from a form-encoded request body."""
    return parse_qs(request.content.decode())[name][0]


def make_factory(
    upstream: FakeUpstream,
    session_store: InMemorySessionStore | None = None,
    timeouts: UpstreamTimeouts | None = None,
) -> HttpxUpstreamClientFactory:
    return HttpxUpstreamClientFactory.create(
        base_url=UPSTREAM_URL,
        session_store=(
            session_store if session_store is not None else InMemorySessionStore()
        ),
        timeouts=timeouts if timeouts is not None else UpstreamTimeouts(),
        transport=httpx.MockTransport(upstream.handler),
    )


@dataclass
class ExplodingClientFactory(UpstreamClientFactory):
    """Client factory that fails the test if any exchange is attempted."""

    def for_user(self, user_id: str) -> UpstreamClient:
        raise AssertionError(f"Unexpected upstream call for user {user_id}")


@dataclass
class InMemoryDocumentRepository(DocumentRepository):
    """In-memory document repository for tests."""

    documents: dict[UUID, DocumentRecord] = field(default_factory=dict)

    def create_document(
        self, user_id: str, filename: str, original_filename: str, path: str
    ) -> DocumentRecord:
        document = DocumentRecord(
            id=uuid4(),
            user_id=user_id,
            filename=filename,
            original_filename=original_filename,
            path=path,
            created_at=datetime.now(tz=UTC),
        )
        self.documents[document.id] = document
        return document

    def get_document(self, document_id: UUID, user_id: str) -> DocumentRecord | None:
        document = self.documents.get(document_id)
        if document is None or document.user_id != user_id:
            return None
        return document

    def list_documents(self, user_id: str) -> list[DocumentRecord]:
        owned = [doc for doc in self.documents.values() if doc.user_id == user_id]
        return sorted(owned, key=lambda doc: doc.created_at, reverse=True)

    def delete_document(self, document_id: UUID) -> None:
        self.documents.pop(document_id, None)


@dataclass
class InMemoryQueryHistoryRepository(QueryHistoryRepository):
    """In-memory query history repository for tests."""

    queries: list[QueryRecord] = field(default_factory=list)

    def create_query(
        self, user_id: str, document_id: UUID, question: str, answer: str
    ) -> QueryRecord:
        record = QueryRecord(
            id=uuid4(),
            user_id=user_id,
            document_id=document_id,
            question=question,
            answer=answer,
            created_at=datetime.now(tz=UTC),
        )
        self.queries.append(record)
        return record

    def list_queries(
        self, user_id: str, limit: int, search: str | None
    ) -> list[QueryRecord]:
        results = [query for query in self.queries if query.user_id == user_id]
        if search:
            needle = search.lower()
            results = [
                query
                for query in results
                if needle in query.question.lower() or needle in query.answer.lower()
            ]
        return list(reversed(results))[:limit]

    def delete_for_document(self, document_id: UUID) -> None:
        self.queries = [
            query for query in self.queries if query.document_id != document_id
        ]


@dataclass
class InMemoryFileStorage(FileStorage):
    """In-memory file storage for tests."""

    files: dict[str, bytes] = field(default_factory=dict)

    def save(self, content: bytes, original_filename: str) -> StoredFile:
        filename = f"{len(self.files) + 1}-{original_filename}"
        path = f"memory/{filename}"
        self.files[path] = content
        return StoredFile(filename=filename, path=path)

    def delete(self, path: str) -> None:
        self.files.pop(path, None)


@dataclass
class InMemoryOtpRepository(OtpRepository):
    """In-memory one-time code repository for tests."""

    codes: dict[str, OtpRecord] = field(default_factory=dict)

    def save_otp(self, email: str, code: str, expires_at: datetime) -> OtpRecord:
        record = OtpRecord(email=email, code=code, expires_at=expires_at)
        self.codes[email] = record
        return record

    def get_otp(self, email: str) -> OtpRecord | None:
        return self.codes.get(email)

    def record_failed_attempt(self, email: str, failed_attempts: int) -> None:
        self.codes[email] = replace(self.codes[email], failed_attempts=failed_attempts)

    def delete_otp(self, email: str) -> None:
        self.codes.pop(email, None)


@dataclass
class RecordingNotifier(Notifier):
    """Notifier that keeps queued emails in a list."""

    jobs: list[EmailJob] = field(default_factory=list)

    def enqueue(self, job: EmailJob) -> None:
        self.jobs.append(job)


@dataclass
class FakeEmailSender(EmailSender):
    """Email sender that fails a configurable number of times first."""

    failures: int = 0
    error: Exception = field(default_factory=lambda: ConnectionError("smtp down"))
    attempts: int = 0
    sent: list[EmailJob] = field(default_factory=list)

    async def send(self, job: EmailJob) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise self.error
        self.sent.append(job)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        upstream_base_url=UPSTREAM_URL,
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def document_repository() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture
def history_repository() -> InMemoryQueryHistoryRepository:
    return InMemoryQueryHistoryRepository()


@pytest.fixture
def file_storage() -> InMemoryFileStorage:
    return InMemoryFileStorage()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    upstream: FakeUpstream,
    session_store: InMemorySessionStore,
    document_repository: InMemoryDocumentRepository,
    history_repository: InMemoryQueryHistoryRepository,
    file_storage: InMemoryFileStorage,
    email_sender: FakeEmailSender,
) -> AppContainer:
    gateway_service = GatewayService(
        client_factory=make_factory(upstream, session_store),
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
        sender=email_sender, backoff_min_seconds=0, backoff_max_seconds=0
    )
    otp_service = OtpService(
        repository=InMemoryOtpRepository(), notifier=notification_queue
    )

    async def close_resources() -> None:
        await notification_queue.stop()

    return AppContainer(
        settings=settings,
        session_store=session_store,
        gateway_service=gateway_service,
        document_service=document_service,
        otp_service=otp_service,
        notification_queue=notification_queue,
        close_resources=close_resources,
    )
