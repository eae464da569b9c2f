import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from coachlink.auth.utils import get_current_user, get_optional_user
from coachlink.db.models import User
from coachlink.db.session import get_session
from coachlink.db.storage import CommentRow, Storage
from .models import CommentCreate, CommentResponse, LikeResponse, SortBy

logger = logging.getLogger("comments")

router = APIRouter(tags=["comments"])


def _to_response(row: CommentRow) -> CommentResponse:
    comment = row.comment
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        user_id=comment.user_id,
        content_id=comment.content_id,
        username=row.username,
        created_at=comment.created_at,
        like_count=row.like_count,
        has_liked=row.has_liked,
    )


@router.post("/content/{content_id}/comments", response_model=CommentResponse, status_code=201)
def create_comment(
    content_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Create a comment on a content link.
    """
    storage = Storage(db)
    if not storage.get_content(content_id):
        raise HTTPException(status_code=404, detail="Content not found")

    try:
        comment = storage.create_comment(current_user.id, content_id, payload.content)
    except SQLAlchemyError as e:
        logger.error(f"Database error in create_comment: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    logger.info(f"User {current_user.id} commented on content {content_id}")
    return _to_response(
        CommentRow(comment=comment, username=current_user.username, like_count=0, has_liked=False)
    )


@router.get("/content/{content_id}/comments", response_model=List[CommentResponse])
def list_comments(
    content_id: int,
    sort_by: SortBy = Query("newest", alias="sortBy"),
    db: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    List every comment on a content link.
    - Query params: sortBy (newest | oldest | likes, default newest)
    - like_count is global; has_liked is relative to the caller.
    """
    storage = Storage(db)
    if not storage.get_content(content_id):
        raise HTTPException(status_code=404, detail="Content not found")

    viewer_id = current_user.id if current_user else None
    rows = storage.list_comments(content_id, sort_by=sort_by, viewer_id=viewer_id)
    return [_to_response(row) for row in rows]


@router.post("/comments/{comment_id}/like", response_model=LikeResponse)
def like_comment(
    comment_id: int,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Like a comment. If already liked, this is a no-op.
    """
    storage = Storage(db)
    comment = storage.get_comment(comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if comment.user_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot like your own comment")

    try:
        created = storage.like(current_user.id, comment_id)
    except SQLAlchemyError as e:
        logger.error(f"Database error in like_comment: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    if created:
        logger.info(f"User {current_user.id} liked comment {comment_id}")
    return LikeResponse(comment_id=comment_id, liked=True, like_count=storage.like_count(comment_id))


@router.post("/comments/{comment_id}/unlike", response_model=LikeResponse)
def unlike_comment(
    comment_id: int,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Remove a like from a comment. Unliking a comment that was never liked is a no-op.
    """
    storage = Storage(db)
    if not storage.get_comment(comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")

    try:
        removed = storage.unlike(current_user.id, comment_id)
    except SQLAlchemyError as e:
        logger.error(f"Database error in unlike_comment: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    if removed:
        logger.info(f"User {current_user.id} unliked comment {comment_id}")
    return LikeResponse(comment_id=comment_id, liked=False, like_count=storage.like_count(comment_id))
