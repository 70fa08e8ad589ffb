"""Supabase-backed document repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from askmyfile.domain.documents import DocumentRecord
from askmyfile.services.documents import DocumentRepository

_COLUMNS = "id, user_id, filename, original_filename, path, created_at"


def _to_record(row: dict[str, object]) -> DocumentRecord:
    return DocumentRecord(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        filename=str(row["filename"]),
        original_filename=str(row["original_filename"]),
        path=str(row["path"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )


@dataclass
class SupabaseDocumentRepository(DocumentRepository):
    """Supabase implementation for uploaded documents."""

    client: Client

    def create_document(
        self, user_id: str, filename: str, original_filename: str, path: str
    ) -> DocumentRecord:
        """Create a document row and return it."""
        response = (
            self.client.table("documents")
            .insert(
                {
                    "user_id": user_id,
                    "filename": filename,
                    "original_filename": original_filename,
                    "path": path,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create document")
        return _to_record(response.data[0])

    def get_document(self, document_id: UUID, user_id: str) -> DocumentRecord | None:
        """Return a document if it exists and belongs to the user."""
        response = (
            self.client.table("documents")
            .select(_COLUMNS)
            .eq("id", str(document_id))
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_record(response.data[0])

    def list_documents(self, user_id: str) -> list[DocumentRecord]:
        """Return a user's documents, newest first."""
        response = (
            self.client.table("documents")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_to_record(row) for row in response.data or []]

    def delete_document(self, document_id: UUID) -> None:
        """Delete a document row."""
        self.client.table("documents").delete().eq("id", str(document_id)).execute()
