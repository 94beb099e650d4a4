"""FastAPI application entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from doc_library.config import settings
from doc_library.database import engine, get_db
from doc_library.errors import (
    DocumentError,
    document_error_handler,
    request_validation_handler,
    unhandled_error_handler,
)
from doc_library.models import Base
from doc_library.services.file_storage import file_storage

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, sweep orphan blobs, start the periodic sweep."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")

    from doc_library.services.orphan_sweeper import sweep_orphan_blobs, sweep_loop
    try:
        await sweep_orphan_blobs()
    except Exception as e:
        logger.error("Startup orphan sweep failed: %s", e)

    sweep_task = None
    if settings.ORPHAN_SWEEP_INTERVAL > 0:
        sweep_task = asyncio.create_task(sweep_loop(settings.ORPHAN_SWEEP_INTERVAL))

    yield

    # Cleanup
    if sweep_task is not None:
        sweep_task.cancel()
    await engine.dispose()


app = FastAPI(
    title="Document Library API",
    version="1.0.0",
    description="Upload, list, download and delete PDF documents.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-access-token"],
)

app.add_exception_handler(DocumentError, document_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_error_handler)


@app.get("/api/health")
async def health_check():
    """Verify API and database connectivity."""
    try:
        async for db in get_db():
            await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
    except Exception as e:
        return {"status": "error", "database": str(e)}


# Register routers
from doc_library.routes.documents import router as documents_router
from doc_library.routes.auth import router as auth_router
app.include_router(documents_router)
app.include_router(auth_router)

# "View" links point straight at the blob store
app.mount("/uploads", StaticFiles(directory=file_storage.base_path), name="uploads")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("doc_library.main:app", host="0.0.0.0", port=settings.API_PORT)
