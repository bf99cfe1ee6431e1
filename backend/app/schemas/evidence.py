from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field


class EvidenceUpsert(BaseModel):
    """Metadata of a file already uploaded to object storage."""
    storage_path: str = Field(min_length=1, max_length=500)
    file_name: Optional[str] = Field(default=None, max_length=255)
    file_size: Optional[int] = Field(default=None, ge=0)
    mime_type: Optional[str] = Field(default=None, max_length=100)


class EvidenceResponse(BaseModel):
    id: UUID
    inspection_id: UUID
    item_id: UUID
    slot: int
    storage_path: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_by: Optional[UUID] = None
    created_at: datetime
    signed_url: Optional[str] = None

    class Config:
        from_attributes = True


class EvidenceUpsertResult(BaseModel):
    evidence: EvidenceResponse
    # Path of the file this upload replaced, for the caller to delete
    replaced_storage_path: Optional[str] = None
