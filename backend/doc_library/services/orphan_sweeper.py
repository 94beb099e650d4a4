"""Orphan blob sweep.

An upload writes its blob before inserting the row. A failed insert removes
the blob again, but a crash between the two steps leaves a blob that no row
references. This sweep deletes such blobs once they are older than the grace
period, so in-flight uploads are never touched.

Runs once on startup and then as an asyncio task within the FastAPI process.
"""
import asyncio
import logging
from pathlib import Path

from sqlalchemy import select

from doc_library.config import settings
from doc_library.database import async_session
from doc_library.models.document import Document
from doc_library.services.file_storage import FileStorageService, file_storage

logger = logging.getLogger(__name__)


async def sweep_orphan_blobs(
    storage: FileStorageService = file_storage,
    grace_seconds: int | None = None,
) -> list[str]:
    """Delete unreferenced blobs older than the grace period. Returns their names."""
    if grace_seconds is None:
        grace_seconds = settings.ORPHAN_GRACE_SECONDS

    async with async_session() as db:
        result = await db.execute(select(Document.filepath))
        referenced = {Path(p).name for p in result.scalars().all()}

    removed = []
    for blob in storage.list_blobs(older_than=grace_seconds):
        if blob.name in referenced:
            continue
        await storage.delete(str(blob))
        removed.append(blob.name)
        logger.warning("Removed orphan blob %s", blob.name)

    if removed:
        logger.info("Orphan sweep removed %d blob(s)", len(removed))
    return removed


async def sweep_loop(interval: int):
    """Run the sweep every `interval` seconds until cancelled."""
    logger.info("Orphan sweep started (every %ds)", interval)
    while True:
        await asyncio.sleep(interval)
        try:
            await sweep_orphan_blobs()
        except Exception as e:
            logger.error("Orphan sweep failed: %s", e)
