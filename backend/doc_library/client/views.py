"""View state for the library list, the upload form and the auth strip.

Views hold plain state and talk to the API through DocumentsClient; the CLI
(or any other front end) renders them.
"""
import logging
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from doc_library.client.api import DocumentApiError, DocumentInfo, DocumentsClient
from doc_library.client.config import client_settings
from doc_library.client.token_store import TokenStore

logger = logging.getLogger(__name__)

CATEGORIES = {
    "general": "General",
    "informe": "Report",
    "manual": "Manual",
    "presentacion": "Presentation",
    "articulo": "Article",
    "other": "Other",
}


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} bytes"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return f"{value:%B} {value.day}, {value.year}"


@dataclass
class LibraryView:
    """Document list with an optional "mine only" scope."""
    client: DocumentsClient
    token_store: TokenStore
    documents: List[DocumentInfo] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    mine_only: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.token_store.is_authenticated()

    @property
    def viewer_id(self) -> Optional[str]:
        return self.token_store.user_id()

    async def refresh(self) -> None:
        user_id = self.viewer_id if self.mine_only else None
        self.loading = True
        try:
            self.documents = await self.client.list_documents(user_id)
            self.error = None
        except DocumentApiError as e:
            logger.error("Error loading documents: %s", e)
            self.error = "Error loading documents. Please try again."
        finally:
            self.loading = False

    async def toggle_mine(self) -> None:
        self.mine_only = not self.mine_only
        await self.refresh()

    async def on_auth_changed(self) -> None:
        await self.refresh()

    def can_delete(self, doc: DocumentInfo) -> bool:
        viewer_id = self.viewer_id
        return self.is_authenticated and viewer_id is not None and viewer_id == doc.user_id

    async def delete(self, document_id: int) -> bool:
        try:
            await self.client.delete_document(document_id)
        except DocumentApiError as e:
            logger.error("Error deleting document %s: %s", document_id, e)
            self.error = e.message or "Error deleting the document. Please try again."
            return False
        self.documents = [d for d in self.documents if d.id != document_id]
        return True

    @property
    def empty_message(self) -> str:
        if self.mine_only:
            return "You haven't uploaded any documents yet."
        return "No documents available."


@dataclass
class UploadForm:
    """Controlled upload form; pre-validates like the server does."""
    client: DocumentsClient
    title: str = ""
    description: str = ""
    category: str = "general"
    file: Optional[Path] = None
    loading: bool = False
    error: Optional[str] = None
    max_bytes: int = field(default_factory=lambda: client_settings.MAX_UPLOAD_BYTES)

    def select_file(self, path: str | Path) -> bool:
        path = Path(path)
        media_type, _ = mimetypes.guess_type(path.name)
        if media_type != "application/pdf":
            self.error = "Only PDF files are allowed"
            self.file = None
            return False
        if path.stat().st_size > self.max_bytes:
            self.error = f"The file must not exceed {self.max_bytes // (1024 * 1024)}MB"
            self.file = None
            return False
        self.file = path
        self.error = None
        return True

    async def submit(self) -> Optional[int]:
        """Upload and return the new document id, or None with `error` set.

        A returned id means the caller should navigate back to the library.
        """
        if not self.title.strip():
            self.error = "Title is required"
            return None
        if self.file is None:
            self.error = "You must select a PDF file"
            return None

        self.loading = True
        self.error = None
        try:
            result = await self.client.upload_document(
                self.file, self.title,
                description=self.description, category=self.category,
            )
        except DocumentApiError as e:
            self.error = e.message or "Error uploading the document"
            return None
        finally:
            self.loading = False
        return result.id


@dataclass
class AuthStatus:
    """Navbar strip showing who is signed in."""
    token_store: TokenStore

    def render(self) -> str:
        if not self.token_store.is_authenticated():
            return "Not signed in"
        name = self.token_store.user_name() or self.token_store.user_id() or "Anonymous User"
        return f"Signed in as {name}"
