"""
Pydantic models for stored pastes and request/response validation.
"""
from typing import Optional
from pydantic import BaseModel, Field, StrictInt, StrictStr, field_validator

# 100 years; keeps expires_at inside BIGINT and the datetime range
MAX_TTL_SECONDS = 100 * 365 * 24 * 3600


class Paste(BaseModel):
    """A stored paste record, exactly as the backend holds it."""
    id: str
    content: str
    max_views: Optional[int] = None
    views: int = 0
    created_at: int = Field(..., description="Creation time (epoch ms)")
    expires_at: Optional[int] = Field(None, description="Expiry time (epoch ms), fixed at creation")


class PasteCreate(BaseModel):
    """Schema for creating a new paste."""
    content: StrictStr = Field(..., min_length=1, description="Text content (required, non-empty)")
    ttl_seconds: Optional[StrictInt] = Field(
        None, ge=1, le=MAX_TTL_SECONDS, description="Optional TTL in seconds"
    )
    max_views: Optional[StrictInt] = Field(None, ge=1, description="Optional view limit")

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class PasteResponse(BaseModel):
    """Schema for paste creation response."""
    id: str = Field(..., description="Unique paste ID")
    url: str = Field(..., description="Shareable URL to view the paste")


class PasteView(BaseModel):
    """Schema for viewing/fetching a paste."""
    content: str = Field(..., description="Paste text content")
    remaining_views: Optional[int] = Field(None, description="Views left (null if unlimited)")
    expires_at: Optional[str] = Field(None, description="Expiry timestamp (ISO 8601, null if no TTL)")


class HealthCheck(BaseModel):
    """Schema for health check response."""
    ok: bool = Field(..., description="Is the storage backend reachable?")
