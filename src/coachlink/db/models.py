import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the plain DateTime columns below."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_session_id() -> str:
    return uuid.uuid4().hex


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True, max_length=50)
    hashed_password: str
    is_coach: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime())


class AuthSession(SQLModel, table=True):
    """A login session; the signed token carries its id."""
    id: str = Field(default_factory=generate_session_id, primary_key=True, max_length=32)
    user_id: int = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime())
    expires_at: datetime = Field(sa_type=DateTime(), index=True)


class ContentLink(SQLModel, table=True):
    """A coach-submitted link to externally hosted training media."""
    id: Optional[int] = Field(default=None, primary_key=True)
    url: str = Field(max_length=2048)
    title: str = Field(max_length=200)
    category: str = Field(index=True, max_length=100)
    coach_id: int = Field(foreign_key="user.id", index=True)
    platform: str = Field(max_length=32)
    thumbnail_url: Optional[str] = Field(default=None, max_length=2048)
    description: Optional[str] = Field(default=None, max_length=1000)
    views: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime())


class Comment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    content_id: int = Field(foreign_key="contentlink.id", index=True)
    content: str = Field(max_length=1000)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(), index=True)


class CommentLike(SQLModel, table=True):
    """At most one row per (user, comment)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    comment_id: int = Field(foreign_key="comment.id", index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime())

    __table_args__ = (
        UniqueConstraint("user_id", "comment_id", name="uq_commentlike_user_comment"),
    )


class WatchStatus(SQLModel, table=True):
    """Per-user watched flag for a content link. Upserted, never duplicated."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    content_id: int = Field(foreign_key="contentlink.id", index=True)
    watched: bool = Field(default=False)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime())

    __table_args__ = (
        UniqueConstraint("user_id", "content_id", name="uq_watchstatus_user_content"),
    )
