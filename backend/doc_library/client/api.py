"""Async client for the Document Library API.

Every call reads the token from the TokenStore at call time and sends it as
both ``Authorization: Bearer`` and ``x-access-token``. A token replaced while
a request is in flight does not affect that request.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp

from doc_library.client.token_store import TokenStore

logger = logging.getLogger(__name__)


class DocumentApiError(Exception):
    """Non-success response (or no response) from the Document API."""

    def __init__(self, status: int, message: str, url: str):
        self.status = status
        self.message = message
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


@dataclass
class DocumentInfo:
    id: int
    title: str
    filename: str
    filesize: int
    description: str = ""
    category: str = "other"
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    view_url: str = ""
    download_url: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "DocumentInfo":
        uploaded_at = data.get("uploadedAt")
        return cls(
            id=int(data["id"]),
            title=data["title"],
            filename=data.get("filename", ""),
            filesize=int(data.get("filesize") or 0),
            description=data.get("description") or "",
            category=data.get("category") or "other",
            user_id=data.get("user_id"),
            user_name=data.get("user_name"),
            uploaded_at=datetime.fromisoformat(uploaded_at) if uploaded_at else None,
            view_url=data.get("viewUrl", ""),
            download_url=data.get("downloadUrl", ""),
        )


@dataclass
class UploadResult:
    id: int
    message: str


class DocumentsClient:
    """Typed wrappers for list, detail, upload, download and delete.

    Usable as an async context manager for a pooled session; otherwise each
    call opens its own.
    """

    def __init__(self, base_url: str, token_store: TokenStore, timeout: float = 60):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store
        self._session: Optional[aiohttp.ClientSession] = None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def open(self) -> None:
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self._timeout)

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "DocumentsClient":
        await self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def auth_headers(self) -> Dict[str, str]:
        token = self.token_store.get()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}", "x-access-token": token}

    async def list_documents(self, user_id: Optional[str] = None) -> List[DocumentInfo]:
        params = {"userId": user_id} if user_id else None
        data = await self._request(
            "GET", "/documents", "Error fetching documents", params=params,
        )
        return [DocumentInfo.from_json(d) for d in data]

    async def get_document(self, document_id: int) -> DocumentInfo:
        data = await self._request(
            "GET", f"/documents/{document_id}", "Error fetching document details",
        )
        return DocumentInfo.from_json(data)

    async def upload_document(
        self, file_path: str | Path, title: str,
        description: str = "", category: str = "general",
    ) -> UploadResult:
        file_path = Path(file_path)
        form = aiohttp.FormData()
        form.add_field("title", title)
        form.add_field("description", description)
        form.add_field("category", category)
        form.add_field(
            "file", file_path.read_bytes(),
            filename=file_path.name, content_type="application/pdf",
        )
        data = await self._request(
            "POST", "/documents", "Error uploading document", data=form,
        )
        return UploadResult(id=int(data["id"]), message=data.get("message", ""))

    async def download_document(self, document_id: int, dest_dir: str | Path, filename: Optional[str] = None) -> Path:
        """Save a document's PDF into dest_dir. Returns the written path."""
        url = f"{self.base_url}/documents/{document_id}/download"
        content, suggested = await self._call(
            "GET", url, "Error downloading document", raw=True,
        )
        target = Path(dest_dir) / _safe_filename(filename or suggested, document_id)
        target.write_bytes(content)
        return target

    async def delete_document(self, document_id: int) -> str:
        data = await self._request(
            "DELETE", f"/documents/{document_id}", "Error deleting document",
        )
        return data.get("message", "")

    async def fetch_main_app_token(self) -> Optional[str]:
        """Token the server relays from the main application, if any."""
        data = await self._request("GET", "/auth/token", "Error fetching token")
        if isinstance(data, dict):
            return data.get("token")
        return None

    async def _request(self, method: str, path: str, fallback: str, **kwargs) -> Any:
        data, _ = await self._call(method, f"{self.base_url}{path}", fallback, **kwargs)
        return data

    async def _call(self, method: str, url: str, fallback: str, raw: bool = False, **kwargs):
        headers = {"Accept": "application/json", **self.auth_headers()}
        try:
            if self._session:
                return await self._send(self._session, method, url, fallback, headers, raw, **kwargs)
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                return await self._send(session, method, url, fallback, headers, raw, **kwargs)
        except DocumentApiError as e:
            logger.error("%s %s failed (%s): %s", method, url, e.status, e.message)
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise DocumentApiError(status=0, message=fallback, url=url) from e

    @staticmethod
    async def _send(session, method, url, fallback, headers, raw, **kwargs):
        async with session.request(method, url, headers=headers, **kwargs) as resp:
            if resp.status >= 400:
                raise DocumentApiError(
                    status=resp.status,
                    message=await _error_message(resp, fallback),
                    url=url,
                )
            if raw:
                suggested = resp.content_disposition.filename if resp.content_disposition else None
                return await resp.read(), suggested
            return await resp.json(content_type=None), None


async def _error_message(resp: aiohttp.ClientResponse, fallback: str) -> str:
    """Server-provided message when the body carries one, else the fallback."""
    try:
        body = await resp.json(content_type=None)
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return fallback


def _safe_filename(name: Optional[str], document_id: int) -> str:
    """Final path component of `name`. The suggested name is uploader input."""
    base = Path(name.replace("\\", "/")).name if name else ""
    if base in ("", ".", ".."):
        return f"document-{document_id}.pdf"
    return base
