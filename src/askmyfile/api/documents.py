"""Document upload, question answering and history endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile

from askmyfile.api.dependencies import current_user_id
from askmyfile.api.models import QueryRequest
from askmyfile.domain.documents import DocumentRecord, DocumentUpload, QueryRecord
from askmyfile.domain.errors import not_found
from askmyfile.services.documents import DEFAULT_HISTORY_LIMIT

if TYPE_CHECKING:
    from askmyfile.containers import AppContainer

router = APIRouter(tags=["documents"])


@router.post("/documents")
async def upload_document(
    request: Request,
    pdf: UploadFile | None = File(default=None),
    user_id: str = Depends(current_user_id),
) -> dict[str, object]:
    """Upload a PDF to the processing service and record it."""
    container: AppContainer = request.app.state.container
    upload = None
    if pdf is not None:
        upload = DocumentUpload(
            content=await pdf.read(), original_filename=pdf.filename or ""
        )
    result = await container.gateway_service.upload_document(user_id, upload)
    return {
        "message": "PDF uploaded successfully",
        "record_id": str(result.record_id),
        "filename": result.filename,
        "original_filename": result.original_filename,
        "upstream_ack": result.upstream_ack,
    }


@router.post("/documents/query")
async def query_document(
    request: Request,
    body: QueryRequest,
    user_id: str = Depends(current_user_id),
) -> dict[str, object]:
    """Ask a question about one of the caller's documents."""
    container: AppContainer = request.app.state.container
    result = await container.gateway_service.ask_question(
        user_id, body.question, _parse_document_id(body.document_id)
    )
    return {
        "answer": result.answer,
        "conversation_history": result.conversation_history,
    }


@router.post("/documents/reset")
async def reset_session(
    request: Request,
    user_id: str = Depends(current_user_id),
) -> dict[str, object]:
    """Clear the caller's vector data on the processing service."""
    container: AppContainer = request.app.state.container
    payload = await container.gateway_service.reset_session(user_id)
    return {"message": "Vector data cleared successfully", "data": payload}


@router.get("/documents")
async def list_documents(
    request: Request,
    user_id: str = Depends(current_user_id),
) -> dict[str, object]:
    """Return the caller's documents, newest first."""
    container: AppContainer = request.app.state.container
    documents = container.document_service.list_documents(user_id)
    return {
        "count": len(documents),
        "documents": [_document_payload(document) for document in documents],
    }


@router.get("/documents/{document_id}")
async def get_document(
    request: Request,
    document_id: str,
    user_id: str = Depends(current_user_id),
) -> dict[str, object]:
    """Return one of the caller's documents."""
    container: AppContainer = request.app.state.container
    document = container.document_service.get_document(
        user_id, _require_document_id(document_id)
    )
    return {"document": _document_payload(document)}


@router.delete("/documents/{document_id}")
async def delete_document(
    request: Request,
    document_id: str,
    user_id: str = Depends(current_user_id),
) -> dict[str, str]:
    """Delete a document, its stored file and its query history."""
    container: AppContainer = request.app.state.container
    container.document_service.delete_document(
        user_id, _require_document_id(document_id)
    )
    return {"message": "PDF deleted successfully"}


@router.get("/history")
async def query_history(
    request: Request,
    limit: int = DEFAULT_HISTORY_LIMIT,
    search: str | None = None,
    user_id: str = Depends(current_user_id),
) -> dict[str, object]:
    """Return the caller's query history."""
    container: AppContainer = request.app.state.container
    history = container.document_service.list_history(user_id, limit, search)
    return {
        "count": len(history),
        "history": [_history_payload(entry) for entry in history],
    }


def _parse_document_id(raw: str | None) -> UUID | None:
    if raw is None or not raw.strip():
        return None
    return _require_document_id(raw)


def _require_document_id(raw: str) -> UUID:
    try:
        return UUID(raw.strip())
    except ValueError:
        raise not_found("PDF not found or not authorized") from None


def _document_payload(document: DocumentRecord) -> dict[str, object]:
    return {
        "id": str(document.id),
        "filename": document.filename,
        "original_filename": document.original_filename,
        "created_at": document.created_at.isoformat(),
    }


def _history_payload(entry: QueryRecord) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "question": entry.question,
        "answer": entry.answer,
        "created_at": entry.created_at.isoformat(),
        "document": {
            "id": str(entry.document_id),
            "filename": entry.document_filename,
            "original_filename": entry.document_original_filename,
        },
    }
