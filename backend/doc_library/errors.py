"""Document API error taxonomy and the FastAPI handler that renders it."""
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from doc_library.config import settings

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """Base for errors returned to API callers as {"message": ...}."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DocumentError):
    """Missing title, or a missing, non-PDF or oversized file."""
    status_code = 400


class NotFoundError(DocumentError):
    status_code = 404


class PermissionDeniedError(DocumentError):
    """Delete attempted by an anonymous caller or a non-owner."""
    status_code = 403


class StorageError(DocumentError):
    """Database or filesystem failure. Detail is hidden in production."""
    status_code = 500


class UpstreamError(DocumentError):
    """The main application's token endpoint failed or returned garbage."""
    status_code = 500


def safe_error_message(e: BaseException, fallback: str = "Unexpected error") -> str:
    """Extract a meaningful message, falling back to the exception class name."""
    msg = str(e).strip()
    if not msg:
        msg = f"{type(e).__name__}: {fallback}"
    return msg


async def document_error_handler(request: Request, exc: DocumentError) -> JSONResponse:
    body = {"message": exc.message}
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc.__cause__)
        if not settings.is_production and exc.__cause__ is not None:
            body["error"] = safe_error_message(exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's parameter errors in the {"message"} shape.

    A malformed document id in the path is reported like an unknown one.
    """
    errors = exc.errors()
    loc = tuple(errors[0].get("loc", ())) if errors else ()
    if loc[:1] == ("path",):
        return JSONResponse(status_code=404, content={"message": "Document not found"})
    field = ".".join(str(part) for part in loc[1:]) or "request"
    return JSONResponse(status_code=400, content={"message": f"Invalid {field}"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = {"message": "An unexpected error occurred"}
    if not settings.is_production:
        body["error"] = safe_error_message(exc)
    return JSONResponse(status_code=500, content=body)
