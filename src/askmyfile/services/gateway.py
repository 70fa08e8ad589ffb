"""Gateway operations forwarding user requests to the processing service.

Each operation has the same shape: validate locally, obtain a client bound to
the caller's upstream session, perform exactly one exchange, then either
persist a record or classify the failure. Nothing is retried here; a failed
exchange raises ``GatewayError`` once and the caller decides what to do.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from askmyfile.adapters.upstream_client import TimeoutClass, UpstreamClientFactory
from askmyfile.domain.documents import DocumentRecord, DocumentUpload
from askmyfile.domain.errors import (
    ClassifiedError,
    GatewayError,
    bad_request,
    not_found,
)
from askmyfile.domain.exchange import ExchangeOutcome, ExchangeSuccess
from askmyfile.services.documents import (
    DocumentRepository,
    FileStorage,
    QueryHistoryRepository,
)
from askmyfile.services.error_classifier import classify_envelope, classify_failure

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/upload"
QUERY_PATH = "/query"
RESET_PATH = "/clear-vector-data"
UPLOAD_FIELD = "pdf_files"
UPLOAD_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class UploadResult:
    """Normalized result of a successful upload."""

    record_id: UUID
    filename: str
    original_filename: str
    upstream_ack: object


@dataclass(frozen=True)
class QueryResult:
    """Normalized result of an answered question."""

    answer: str
    conversation_history: list[object]


@dataclass
class GatewayService:
    """Upload, query and reset operations against the processing service."""

    client_factory: UpstreamClientFactory
    document_repository: DocumentRepository
    history_repository: QueryHistoryRepository
    file_storage: FileStorage

    async def upload_document(
        self, user_id: str, upload: DocumentUpload | None
    ) -> UploadResult:
        """Forward a document to the processing service and record it."""
        if upload is None or not upload.content:
            raise bad_request("No PDF file uploaded")
        if not upload.original_filename.strip():
            raise bad_request("Uploaded file has no filename")

        client = self.client_factory.for_user(user_id)
        logger.info(
            "Sending document to processing service for user %s: %s",
            user_id,
            upload.original_filename,
        )
        outcome = await client.post(
            UPLOAD_PATH,
            timeout_class=TimeoutClass.TRANSFER,
            files={
                UPLOAD_FIELD: (
                    upload.original_filename,
                    upload.content,
                    UPLOAD_CONTENT_TYPE,
                )
            },
        )
        payload = self._expect_success(user_id, UPLOAD_PATH, outcome)
        envelope_error = classify_envelope(payload)
        if envelope_error is not None:
            raise self._gateway_error(user_id, UPLOAD_PATH, envelope_error, payload)

        stored = self.file_storage.save(upload.content, upload.original_filename)
        try:
            document = self.document_repository.create_document(
                user_id=user_id,
                filename=stored.filename,
                original_filename=upload.original_filename,
                path=stored.path,
            )
        except Exception:
            self.file_storage.delete(stored.path)
            raise
        return UploadResult(
            record_id=document.id,
            filename=document.filename,
            original_filename=document.original_filename,
            upstream_ack=payload,
        )

    async def ask_question(
        self, user_id: str, question: str | None, document_id: UUID | None
    ) -> QueryResult:
        """Ask the processing service a question about one of the caller's documents."""
        if not question or not question.strip():
            raise bad_request("Question is required")
        if document_id is None:
            raise bad_request("Document ID is required")
        document = self._owned_document(user_id, document_id)

        client = self.client_factory.for_user(user_id)
        logger.info("Sending query to processing service for user %s", user_id)
        outcome = await client.post(QUERY_PATH, data={"query": question})
        payload = self._expect_success(user_id, QUERY_PATH, outcome)
        envelope_error = classify_envelope(
            payload,
            required_fields={"answer": str},
            optional_fields={"conversation_history": list},
        )
        if envelope_error is not None:
            raise self._gateway_error(user_id, QUERY_PATH, envelope_error, payload)

        data = payload["data"]  # type: ignore[index]
        answer: str = data["answer"]
        history: list[object] = data.get("conversation_history") or []
        self.history_repository.create_query(
            user_id=user_id,
            document_id=document.id,
            question=question,
            answer=answer,
        )
        return QueryResult(answer=answer, conversation_history=history)

    async def reset_session(self, user_id: str) -> object:
        """Clear the caller's vector data upstream and pass the reply through."""
        client = self.client_factory.for_user(user_id)
        logger.info("Sending clear vector data request for user %s", user_id)
        outcome = await client.post(RESET_PATH)
        return self._expect_success(user_id, RESET_PATH, outcome)

    def _owned_document(self, user_id: str, document_id: UUID) -> DocumentRecord:
        document = self.document_repository.get_document(document_id, user_id)
        if document is None:
            raise not_found("PDF not found or not authorized")
        return document

    def _expect_success(
        self, user_id: str, path: str, outcome: ExchangeOutcome
    ) -> object:
        if isinstance(outcome, ExchangeSuccess):
            return outcome.payload
        raise self._gateway_error(user_id, path, classify_failure(outcome), outcome)

    @staticmethod
    def _gateway_error(
        user_id: str, path: str, error: ClassifiedError, diagnostic: object
    ) -> GatewayError:
        logger.warning(
            "Upstream %s failed for user %s: %s (%s) %r",
            path,
            user_id,
            error.category.value,
            error.status_code,
            diagnostic,
        )
        return GatewayError(error)
