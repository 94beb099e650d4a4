"""Document model - PDF metadata (actual bytes live in the blob store)."""
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from doc_library.models.base import Base, UploadedAtMixin, OwnerMixin


class Document(Base, UploadedAtMixin, OwnerMixin):
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(100), default="other")
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    filepath: Mapped[str] = mapped_column(String(1000), nullable=False)
    filesize: Mapped[int] = mapped_column(Integer, nullable=False)
