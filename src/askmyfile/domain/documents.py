"""Domain models for uploaded documents and query history."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class DocumentUpload:
    """File received from the caller, not yet forwarded."""

    content: bytes
    original_filename: str


@dataclass(frozen=True)
class StoredFile:
    """File written to local storage."""

    filename: str
    path: str


@dataclass(frozen=True)
class DocumentRecord:
    """Uploaded document owned by a user."""

    id: UUID
    user_id: str
    filename: str
    original_filename: str
    path: str
    created_at: datetime


@dataclass(frozen=True)
class QueryRecord:
    """Question asked about a document and the answer received."""

    id: UUID
    user_id: str
    document_id: UUID
    question: str
    answer: str
    created_at: datetime
    document_filename: str | None = None
    document_original_filename: str | None = None
