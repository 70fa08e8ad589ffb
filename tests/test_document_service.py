"""Tests for the document library service."""

import pytest

from askmyfile.domain.errors import ErrorCategory, GatewayError
from askmyfile.services.documents import DocumentService
from tests.conftest import (
    InMemoryDocumentRepository,
    InMemoryFileStorage,
    InMemoryQueryHistoryRepository,
)


def _service() -> DocumentService:
    return DocumentService(
        document_repository=InMemoryDocumentRepository(),
        history_repository=InMemoryQueryHistoryRepository(),
        file_storage=InMemoryFileStorage(),
    )


def test_list_documents_only_returns_callers_documents() -> None:
    service = _service()
    service.document_repository.create_document("alice", "a", "a.pdf", "memory/a")
    service.document_repository.create_document("bob", "b", "b.pdf", "memory/b")

    documents = service.list_documents("alice")

    assert [document.original_filename for document in documents] == ["a.pdf"]


def test_get_document_owned_by_someone_else_is_not_found() -> None:
    service = _service()
    document = service.document_repository.create_document(
        "bob", "b", "b.pdf", "memory/b"
    )

    with pytest.raises(GatewayError) as excinfo:
        service.get_document("alice", document.id)

    assert excinfo.value.error.category is ErrorCategory.NOT_FOUND_OR_UNAUTHORIZED


def test_delete_document_removes_file_history_and_record() -> None:
    service = _service()
    stored = service.file_storage.save(b"%PDF", "a.pdf")
    document = service.document_repository.create_document(
        "alice", stored.filename, "a.pdf", stored.path
    )
    service.history_repository.create_query("alice", document.id, "Q", "A")

    service.delete_document("alice", document.id)

    assert service.file_storage.files == {}
    assert service.history_repository.queries == []
    assert service.document_repository.documents == {}


def test_delete_document_of_other_user_keeps_everything() -> None:
    service = _service()
    document = service.document_repository.create_document(
        "bob", "b", "b.pdf", "memory/b"
    )

    with pytest.raises(GatewayError):
        service.delete_document("alice", document.id)

    assert document.id in service.document_repository.documents


def test_history_is_newest_first_and_searchable() -> None:
    service = _service()
    document = service.document_repository.create_document(
        "alice", "a", "a.pdf", "memory/a"
    )
    service.history_repository.create_query("alice", document.id, "Revenue?", "1M")
    service.history_repository.create_query("alice", document.id, "Costs?", "500k")
    service.history_repository.create_query("bob", document.id, "Revenue?", "2M")

    history = service.list_history("alice")
    searched = service.list_history("alice", search="  revenue ")

    assert [entry.question for entry in history] == ["Costs?", "Revenue?"]
    assert [entry.answer for entry in searched] == ["1M"]


def test_history_limit_is_bounded() -> None:
    service = _service()
    document = service.document_repository.create_document(
        "alice", "a", "a.pdf", "memory/a"
    )
    for index in range(3):
        service.history_repository.create_query("alice", document.id, f"Q{index}", "A")

    assert len(service.list_history("alice", limit=0)) == 1
    assert len(service.list_history("alice", limit=2)) == 2
