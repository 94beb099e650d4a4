"""Client for the Document Library API: API wrappers, view state and token relay."""
from doc_library.client.api import DocumentApiError, DocumentInfo, DocumentsClient, UploadResult
from doc_library.client.auth import AuthClient
from doc_library.client.token_relay import TokenRelay
from doc_library.client.token_store import TokenStore
from doc_library.client.views import AuthStatus, LibraryView, UploadForm

__all__ = [
    "DocumentApiError", "DocumentInfo", "DocumentsClient", "UploadResult",
    "AuthClient", "TokenRelay", "TokenStore",
    "AuthStatus", "LibraryView", "UploadForm",
]
