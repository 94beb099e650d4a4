"""Import all models so SQLAlchemy metadata knows about them."""
from doc_library.models.base import Base
from doc_library.models.document import Document

__all__ = ["Base", "Document"]
