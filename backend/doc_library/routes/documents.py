"""Documents API routes."""
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File as FastAPIFile, Form, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from doc_library.config import settings
from doc_library.database import get_db
from doc_library.errors import NotFoundError, PermissionDeniedError, StorageError, ValidationError
from doc_library.models.document import Document
from doc_library.schemas.document import DocumentCreated, DocumentResponse, MessageResponse
from doc_library.services.file_storage import file_storage
from doc_library.services.identity import Identity, get_current_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])

PDF_MEDIA_TYPE = "application/pdf"


@router.get("", response_model=list[DocumentResponse])
async def list_documents(
    user_id: Optional[str] = Query(None, alias="userId", description="Owner filter"),
    db: AsyncSession = Depends(get_db),
):
    """List documents, newest first, optionally only those owned by userId."""
    query = select(Document)
    if user_id:
        query = query.where(Document.user_id == user_id)
    query = query.order_by(desc(Document.uploaded_at), desc(Document.id))

    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        raise StorageError("Error fetching documents") from e
    return [_to_response(d) for d in result.scalars().all()]


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single document by ID."""
    doc = await _get_or_404(db, document_id, "Error fetching document")
    return _to_response(doc)


@router.post("", response_model=DocumentCreated, status_code=201)
async def upload_document(
    file: Optional[UploadFile] = FastAPIFile(None),
    title: str = Form(""),
    description: str = Form(""),
    category: str = Form(""),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Upload a PDF and create its document record."""
    if file is None or not file.filename:
        raise ValidationError("No file was uploaded")
    if file.content_type != PDF_MEDIA_TYPE:
        raise ValidationError("Only PDF files are allowed")

    # Bounded read: one byte past the limit is enough to spot an oversized file.
    contents = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError(f"The file must not exceed {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB")
    if not title.strip():
        raise ValidationError("Document title is required")

    # Keep only the final path component; the name is echoed back on download.
    original_name = Path(file.filename.replace("\\", "/")).name
    if original_name in ("", ".", ".."):
        original_name = "document.pdf"

    try:
        storage_path = await file_storage.save(contents, original_name)
    except OSError as e:
        raise StorageError("Error uploading document") from e

    doc = Document(
        title=title,
        description=description or "",
        category=category or "other",
        filename=original_name,
        filepath=storage_path,
        filesize=len(contents),
        user_id=identity.id,
        user_name=identity.name,
    )
    try:
        db.add(doc)
        await db.commit()
        await db.refresh(doc)
    except SQLAlchemyError as e:
        await db.rollback()
        await file_storage.delete(storage_path)
        raise StorageError("Error uploading document") from e

    logger.info("Document %s uploaded by %s (%d bytes)", doc.id, identity.id, doc.filesize)
    return {"id": doc.id, "message": "Document uploaded successfully"}


@router.get("/{document_id}/download")
async def download_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Stream a document's PDF with its original filename."""
    doc = await _get_or_404(db, document_id, "Error downloading document")

    # The row can outlive its blob if a concurrent delete got there first.
    if not file_storage.exists(doc.filepath):
        logger.warning("Blob missing for document %s: %s", doc.id, doc.filepath)
        raise NotFoundError("Document not found")

    return FileResponse(
        path=doc.filepath,
        filename=doc.filename,
        media_type=PDF_MEDIA_TYPE,
    )


@router.delete("/{document_id}", response_model=MessageResponse)
async def delete_document(
    document_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Delete a document. Only its non-anonymous owner may do this."""
    doc = await _get_or_404(db, document_id, "Error deleting document")

    if identity.is_anonymous or doc.user_id != identity.id:
        logger.warning("Delete of document %s refused for %s", doc.id, identity.id)
        raise PermissionDeniedError("You do not have permission to delete this document")

    storage_path = doc.filepath
    try:
        await db.delete(doc)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Error deleting document") from e

    try:
        await file_storage.delete(storage_path)
    except OSError as e:
        # The row is gone; the orphan sweep picks the blob up later.
        logger.error("Could not remove blob %s: %s", storage_path, e)

    logger.info("Document %s deleted by %s", document_id, identity.id)
    return {"message": "Document deleted successfully"}


async def _get_or_404(db: AsyncSession, document_id: int, failure_message: str) -> Document:
    try:
        result = await db.execute(select(Document).where(Document.id == document_id))
    except SQLAlchemyError as e:
        raise StorageError(failure_message) from e
    doc = result.scalar_one_or_none()
    if not doc:
        raise NotFoundError("Document not found")
    return doc


def _to_response(doc: Document) -> dict:
    """Convert SQLAlchemy model to response dict."""
    return {
        "id": doc.id,
        "title": doc.title,
        "description": doc.description,
        "category": doc.category,
        "filename": doc.filename,
        "filepath": doc.filepath,
        "filesize": doc.filesize,
        "user_id": doc.user_id,
        "user_name": doc.user_name,
        "uploaded_at": doc.uploaded_at,
        "view_url": f"/uploads/{Path(doc.filepath).name}",
        "download_url": f"/api/documents/{doc.id}/download",
    }
