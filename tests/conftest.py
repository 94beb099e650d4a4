"""Test configuration and fixtures for the Document Library tests.

The app reads its settings at import time, so the environment is pointed at a
throwaway SQLite database and blob directory before anything is imported.
"""

import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt
import pytest
import pytest_asyncio

TEST_JWT_SECRET = "test-secret-for-document-library"

_TMP_DIR = Path(tempfile.mkdtemp(prefix="doc-library-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'documents.db'}"
os.environ["FILE_STORAGE_PATH"] = str(_TMP_DIR / "uploads")
os.environ["AUTH_VERIFY_SIGNATURE"] = "true"
os.environ["AUTH_JWT_SECRET"] = TEST_JWT_SECRET
os.environ["ORPHAN_SWEEP_INTERVAL"] = "0"
os.environ["ENVIRONMENT"] = "development"

from fastapi.testclient import TestClient  # noqa: E402

from doc_library.database import engine  # noqa: E402
from doc_library.main import app  # noqa: E402
from doc_library.models import Base  # noqa: E402
from doc_library.services.file_storage import file_storage  # noqa: E402


def make_token(user_id, name=None, secret=TEST_JWT_SECRET, expires_in=3600, **claims) -> str:
    """Signed HS256 token carrying the claims the identity service issues."""
    payload = {"id": user_id, **claims}
    if name is not None:
        payload["username"] = name
    payload["exp"] = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(user_id, name=None) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, name)}"}


def pdf_bytes(size: int) -> bytes:
    header = b"%PDF-1.4\n"
    return header + b"0" * (size - len(header))


def stored_blobs() -> list[Path]:
    return sorted(p for p in file_storage.base_path.iterdir() if p.is_file())


async def reset_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


def _clear_blobs():
    for blob in stored_blobs():
        blob.unlink()


@pytest.fixture
def client():
    """TestClient over a fresh database and an empty blob store."""
    asyncio.run(reset_database())
    _clear_blobs()
    with TestClient(app) as c:
        yield c


@pytest_asyncio.fixture
async def fresh_db():
    """Fresh tables for async tests that talk to the database directly."""
    await reset_database()
    _clear_blobs()
    yield


@pytest.fixture
def upload(client):
    """POST a PDF as the given user (or anonymously)."""

    def _upload(title="Spec", size=10 * 1024, user=None, name=None, filename="spec.pdf",
                content_type="application/pdf", headers=None, **fields):
        data = {"title": title, **fields}
        if headers is None:
            headers = bearer(user, name) if user else {}
        return client.post(
            "/api/documents",
            files={"file": (filename, pdf_bytes(size), content_type)},
            data=data,
            headers=headers,
        )

    return _upload
