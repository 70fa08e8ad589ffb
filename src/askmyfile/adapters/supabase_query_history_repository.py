"""Supabase-backed query history repository."""

import re
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from askmyfile.domain.documents import QueryRecord
from askmyfile.services.documents import QueryHistoryRepository

_COLUMNS = (
    "id, user_id, document_id, question, answer, created_at, "
    "documents(filename, original_filename)"
)
# Characters with meaning inside a PostgREST or() filter.
_FILTER_RESERVED = re.compile(r"[,().%*\\]")


def _to_record(row: dict[str, object]) -> QueryRecord:
    document = row.get("documents")
    document = document if isinstance(document, dict) else {}
    return QueryRecord(
        id=UUID(str(row["id"])),
        user_id=str(row["user_id"]),
        document_id=UUID(str(row["document_id"])),
        question=str(row["question"]),
        answer=str(row["answer"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        document_filename=document.get("filename"),
        document_original_filename=document.get("original_filename"),
    )


@dataclass
class SupabaseQueryHistoryRepository(QueryHistoryRepository):
    """Supabase implementation for query history."""

    client: Client

    def create_query(
        self, user_id: str, document_id: UUID, question: str, answer: str
    ) -> QueryRecord:
        """Create a history row and return it."""
        response = (
            self.client.table("query_history")
            .insert(
                {
                    "user_id": user_id,
                    "document_id": str(document_id),
                    "question": question,
                    "answer": answer,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create query history entry")
        return _to_record(response.data[0])

    def list_queries(
        self, user_id: str, limit: int, search: str | None
    ) -> list[QueryRecord]:
        """Return a user's history, newest first, optionally filtered."""
        query = (
            self.client.table("query_history")
            .select(_COLUMNS)
            .eq("user_id", user_id)
        )
        term = _FILTER_RESERVED.sub(" ", search).strip() if search else ""
        if term:
            query = query.or_(f"question.ilike.*{term}*,answer.ilike.*{term}*")
        response = query.order("created_at", desc=True).limit(limit).execute()
        return [_to_record(row) for row in response.data or []]

    def delete_for_document(self, document_id: UUID) -> None:
        """Delete every history row that references a document."""
        self.client.table("query_history").delete().eq(
            "document_id", str(document_id)
        ).execute()
