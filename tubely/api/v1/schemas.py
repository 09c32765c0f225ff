from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Health status indicator.")
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VideoResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = Field(
        default=None,
        description="Time-limited playback URL; the permanent storage locator is never returned.",
    )
    created_at: datetime
    updated_at: datetime


class ErrorResponse(BaseModel):
    detail: str


__all__ = ["HealthResponse", "VideoResponse", "ErrorResponse"]
