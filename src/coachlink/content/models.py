from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .platforms import detect_platform


class ContentCreate(BaseModel):
    """Payload for sharing a new training link. Only supported platforms are accepted."""
    url: str = Field(..., min_length=1, max_length=2048)
    title: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    thumbnail_url: Optional[str] = Field(default=None, max_length=2048)

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError('URL must start with http:// or https://')
        if detect_platform(v) is None:
            raise ValueError(
                'URL must be from a supported social media platform '
                '(YouTube, Instagram, TikTok, or Facebook)'
            )
        return v

    @field_validator('title', 'category')
    @classmethod
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()

    @field_validator('description', 'thumbnail_url')
    @classmethod
    def blank_to_none(cls, v):
        if v is None or not v.strip():
            return None
        return v.strip()


class Watcher(BaseModel):
    username: str
    watched: bool


class ContentResponse(BaseModel):
    id: int
    url: str
    title: str
    category: str
    coach_id: int
    platform: str
    thumbnail_url: Optional[str] = None
    description: Optional[str] = None
    views: int
    created_at: datetime
    watchers: Optional[List[Watcher]] = None


class WatchUpdate(BaseModel):
    watched: bool


class WatchStatusResponse(BaseModel):
    content_id: int
    watched: bool
    updated_at: Optional[datetime] = None


class ViewResponse(BaseModel):
    content_id: int
    views: int
    watched: bool
