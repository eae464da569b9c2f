from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

SortBy = Literal["newest", "oldest", "likes"]


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if not v.strip():
            raise ValueError('Comment content cannot be empty')
        return v.strip()


class CommentResponse(BaseModel):
    id: int
    content: str
    user_id: int
    content_id: int
    username: str
    created_at: datetime
    like_count: int = 0
    has_liked: bool = False


class LikeResponse(BaseModel):
    comment_id: int
    liked: bool
    like_count: int
