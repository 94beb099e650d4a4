"""Document request/response schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DocumentResponse(BaseModel):
    """A document row plus the links the library view renders."""
    id: int
    title: str
    description: Optional[str] = ""
    category: Optional[str] = "other"
    filename: str
    filepath: str
    filesize: int
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    uploaded_at: datetime = Field(alias="uploadedAt")
    view_url: str = Field(alias="viewUrl")
    download_url: str = Field(alias="downloadUrl")

    model_config = {"populate_by_name": True}


class DocumentCreated(BaseModel):
    id: int
    message: str


class MessageResponse(BaseModel):
    message: str
