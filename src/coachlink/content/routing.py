import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from coachlink.auth.utils import get_current_user, get_optional_user, require_coach
from coachlink.db.models import ContentLink, User
from coachlink.db.session import get_session
from coachlink.db.storage import Storage
from .models import (
    ContentCreate,
    ContentResponse,
    ViewResponse,
    Watcher,
    WatchStatusResponse,
    WatchUpdate,
)
from .platforms import default_thumbnail, detect_platform

logger = logging.getLogger("content")

router = APIRouter(tags=["content"])


def _to_response(content: ContentLink, watchers=None) -> ContentResponse:
    response = ContentResponse.model_validate(content, from_attributes=True)
    if watchers is not None:
        response.watchers = [Watcher(username=u, watched=w) for u, w in watchers]
    return response


def _get_content_or_404(storage: Storage, content_id: int) -> ContentLink:
    content = storage.get_content(content_id)
    if not content:
        raise HTTPException(status_code=404, detail="Content not found")
    return content


@router.post("", response_model=ContentResponse, status_code=201)
def create_content(
    payload: ContentCreate,
    db: Session = Depends(get_session),
    current_user: User = Depends(require_coach),
):
    """Share a new training link. Coaches only."""
    try:
        content = Storage(db).create_content(
            coach_id=current_user.id,
            url=payload.url,
            title=payload.title,
            category=payload.category,
            platform=detect_platform(payload.url),
            thumbnail_url=payload.thumbnail_url or default_thumbnail(payload.url),
            description=payload.description,
        )
    except SQLAlchemyError as e:
        logger.error(f"Database error in create_content: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    logger.info(f"Coach {current_user.id} created content {content.id} ({content.platform})")
    return _to_response(content)


@router.get("", response_model=List[ContentResponse])
def list_content(
    category: Optional[str] = None,
    db: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    List all content, newest first.
    Coaches additionally receive the watcher list of every item.
    """
    storage = Storage(db)
    contents = storage.list_content(category=category)
    if current_user is not None and current_user.is_coach:
        return [_to_response(c, storage.watchers_for_content(c.id)) for c in contents]
    return [_to_response(c) for c in contents]


@router.get("/{content_id}", response_model=ContentResponse)
def get_content(content_id: int, db: Session = Depends(get_session)):
    return _to_response(_get_content_or_404(Storage(db), content_id))


@router.delete("/{content_id}")
def delete_content(
    content_id: int,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Delete a content link and everything attached to it (owning coach only)."""
    storage = Storage(db)
    content = _get_content_or_404(storage, content_id)
    if not current_user.is_coach or content.coach_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not authorized to delete this content")

    try:
        storage.delete_content(content_id)
    except SQLAlchemyError as e:
        logger.error(f"Database error in delete_content: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    logger.info(f"Coach {current_user.id} deleted content {content_id}")
    return {"ok": True, "deleted_id": content_id}


@router.post("/{content_id}/view", response_model=ViewResponse)
def record_view(
    content_id: int,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Record a view. Players bump the view counter and are marked as having
    watched the content; coach views are not counted.
    """
    storage = Storage(db)
    content = _get_content_or_404(storage, content_id)

    if current_user.is_coach:
        status = storage.get_watched(current_user.id, content_id)
        return ViewResponse(
            content_id=content_id,
            views=content.views,
            watched=bool(status and status.watched),
        )

    try:
        recorded = storage.record_view(current_user.id, content_id)
    except SQLAlchemyError as e:
        logger.error(f"Database error in record_view: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    if recorded is None:
        raise HTTPException(status_code=404, detail="Content not found")
    views, status = recorded
    return ViewResponse(content_id=content_id, views=views, watched=status.watched)


@router.get("/{content_id}/watch", response_model=WatchStatusResponse)
def get_watch_status(
    content_id: int,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    storage = Storage(db)
    _get_content_or_404(storage, content_id)
    status = storage.get_watched(current_user.id, content_id)
    if status is None:
        return WatchStatusResponse(content_id=content_id, watched=False)
    return WatchStatusResponse(
        content_id=content_id, watched=status.watched, updated_at=status.updated_at
    )


@router.post("/{content_id}/watch", response_model=WatchStatusResponse)
def set_watch_status(
    content_id: int,
    payload: WatchUpdate,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    storage = Storage(db)
    _get_content_or_404(storage, content_id)

    try:
        status = storage.set_watched(current_user.id, content_id, payload.watched)
    except SQLAlchemyError as e:
        logger.error(f"Database error in set_watch_status: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Database error")

    logger.info(f"User {current_user.id} set watched={payload.watched} on content {content_id}")
    return WatchStatusResponse(
        content_id=content_id, watched=status.watched, updated_at=status.updated_at
    )
