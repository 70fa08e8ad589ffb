"""Services for a user's uploaded documents and query history."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from askmyfile.domain.documents import DocumentRecord, QueryRecord, StoredFile
from askmyfile.domain.errors import not_found

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 200


class DocumentRepository(Protocol):
    """Persistence interface for uploaded documents."""

    def create_document(
        self, user_id: str, filename: str, original_filename: str, path: str
    ) -> DocumentRecord:
        """Create a document row and return it."""

    def get_document(self, document_id: UUID, user_id: str) -> DocumentRecord | None:
        """Return a document if it exists and belongs to the user."""

    def list_documents(self, user_id: str) -> list[DocumentRecord]:
        """Return a user's documents, newest first."""

    def delete_document(self, document_id: UUID) -> None:
        """Delete a document row."""


class QueryHistoryRepository(Protocol):
    """Persistence interface for answered questions."""

    def create_query(
        self, user_id: str, document_id: UUID, question: str, answer: str
    ) -> QueryRecord:
        """Create a history row and return it."""

    def list_queries(
        self, user_id: str, limit: int, search: str | None
    ) -> list[QueryRecord]:
        """Return a user's history, newest first, optionally filtered."""

    def delete_for_document(self, document_id: UUID) -> None:
        """Delete every history row that references a document."""


class FileStorage(Protocol):
    """Storage for the raw bytes of uploaded documents."""

    def save(self, content: bytes, original_filename: str) -> StoredFile:
        """Persist file bytes and return where they were written."""

    def delete(self, path: str) -> None:
        """Remove a stored file; missing files are ignored."""


@dataclass
class DocumentService:
    """Read and delete operations over a user's documents."""

    document_repository: DocumentRepository
    history_repository: QueryHistoryRepository
    file_storage: FileStorage

    def list_documents(self, user_id: str) -> list[DocumentRecord]:
        """Return the caller's documents, newest first."""
        return self.document_repository.list_documents(user_id)

    def get_document(self, user_id: str, document_id: UUID) -> DocumentRecord:
        """Return a document owned by the caller."""
        document = self.document_repository.get_document(document_id, user_id)
        if document is None:
            raise not_found("Document not found or not authorized")
        return document

    def delete_document(self, user_id: str, document_id: UUID) -> None:
        """Delete a document along with its file and history."""
        document = self.get_document(user_id, document_id)
        try:
            self.file_storage.delete(document.path)
        except OSError:
            logger.exception("Failed to delete file %s", document.path)
        self.history_repository.delete_for_document(document.id)
        self.document_repository.delete_document(document.id)

    def list_history(
        self,
        user_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
        search: str | None = None,
    ) -> list[QueryRecord]:
        """Return the caller's query history, optionally filtered by text."""
        bounded = max(1, min(limit, MAX_HISTORY_LIMIT))
        cleaned = search.strip() if search else None
        return self.history_repository.list_queries(user_id, bounded, cleaned or None)
