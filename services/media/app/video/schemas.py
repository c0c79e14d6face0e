"""
Game video — Pydantic V2 response schemas.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.constants import VideoProcessingStatus


class _Base(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VideoStatusResponse(_Base):
    game_id: str
    status: VideoProcessingStatus


class VideoSources(_Base):
    """Presigned GET URLs keyed the way the web player expects."""
    original: str | None = None
    p1080: str | None = Field(default=None, alias="1080p")
    p720: str | None = Field(default=None, alias="720p")


class VideoResponse(_Base):
    """Processed video data in the shape the web player consumes."""
    game_id: str
    status: VideoProcessingStatus
    media_convert_job_id: str | None = None
    video_sources: VideoSources = Field(default_factory=VideoSources)
    thumbnails: list[str] = Field(default_factory=list)
    updated_at: str | None = None
