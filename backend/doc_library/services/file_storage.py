"""Blob store: uploaded PDF bytes on the local filesystem."""
import os
import time
import uuid
from pathlib import Path

import aiofiles

from doc_library.config import settings


class FileStorageService:
    """Handles blob read/write/delete under a single storage directory."""

    def __init__(self, base_path: str | Path | None = None):
        self.base_path = Path(base_path or settings.FILE_STORAGE_PATH)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def blob_path(self, filename: str) -> Path:
        return self.base_path / filename

    async def save(self, file_bytes: bytes, original_name: str) -> str:
        """Save file bytes under a generated name. Returns the storage path."""
        file_id = str(uuid.uuid4())
        ext = Path(original_name).suffix.lower()
        file_path = self.blob_path(f"{file_id}{ext}")

        async with aiofiles.open(file_path, "wb") as f:
            await f.write(file_bytes)
        return str(file_path)

    async def read(self, storage_path: str) -> bytes:
        """Read file bytes from storage path."""
        async with aiofiles.open(storage_path, "rb") as f:
            return await f.read()

    def exists(self, storage_path: str) -> bool:
        return Path(storage_path).is_file()

    async def delete(self, storage_path: str) -> bool:
        """Delete a blob. Returns False if it was already gone."""
        path = Path(storage_path)
        if not path.exists():
            return False
        os.remove(path)
        return True

    def list_blobs(self, older_than: float = 0) -> list[Path]:
        """Blobs whose mtime is at least `older_than` seconds in the past."""
        cutoff = time.time() - older_than
        return [
            p for p in self.base_path.iterdir()
            if p.is_file() and p.stat().st_mtime <= cutoff
        ]


file_storage = FileStorageService()
