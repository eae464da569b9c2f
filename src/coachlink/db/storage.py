import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional, Tuple

from sqlalchemy import and_, delete, func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, col, select

from .models import (
    AuthSession,
    Comment,
    CommentLike,
    ContentLink,
    User,
    WatchStatus,
    utc_now,
)

logger = logging.getLogger("storage")

CommentSort = Literal["newest", "oldest", "likes"]


@dataclass
class CommentRow:
    comment: Comment
    username: str
    like_count: int
    has_liked: bool


class Storage:
    """All reads and writes against the store go through here.

    Counters are incremented in SQL and the per-pair tables (watch status,
    comment likes) are written with single ``INSERT ... ON CONFLICT``
    statements, so concurrent requests never duplicate rows or lose updates.
    """

    def __init__(self, db: Session):
        self.db = db

    def _insert(self, table):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(table)
        if dialect == "sqlite":
            return sqlite_insert(table)
        raise NotImplementedError(f"Upserts are not supported on {dialect}")

    # Users

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.exec(select(User).where(User.username == username)).first()

    def create_user(self, username: str, hashed_password: str, is_coach: bool = False) -> User:
        user = User(username=username, hashed_password=hashed_password, is_coach=is_coach)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    # Login sessions

    def create_auth_session(self, user_id: int, expires_at: datetime) -> AuthSession:
        auth_session = AuthSession(user_id=user_id, expires_at=expires_at)
        self.db.add(auth_session)
        self.db.commit()
        self.db.refresh(auth_session)
        return auth_session

    def get_auth_session(self, session_id: str) -> Optional[AuthSession]:
        """Return the session if it exists and has not expired."""
        return self.db.exec(
            select(AuthSession).where(
                AuthSession.id == session_id,
                col(AuthSession.expires_at) > utc_now(),
            )
        ).first()

    def delete_auth_session(self, session_id: str) -> None:
        self.db.exec(delete(AuthSession).where(col(AuthSession.id) == session_id))
        self.db.commit()

    def count_active_sessions(self) -> int:
        return self.db.exec(
            select(func.count())
            .select_from(AuthSession)
            .where(col(AuthSession.expires_at) > utc_now())
        ).one()

    # Content

    def create_content(
        self,
        coach_id: int,
        url: str,
        title: str,
        category: str,
        platform: str,
        thumbnail_url: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ContentLink:
        content = ContentLink(
            url=url,
            title=title,
            category=category,
            coach_id=coach_id,
            platform=platform,
            thumbnail_url=thumbnail_url,
            description=description,
            views=0,
        )
        self.db.add(content)
        self.db.commit()
        self.db.refresh(content)
        return content

    def get_content(self, content_id: int) -> Optional[ContentLink]:
        return self.db.get(ContentLink, content_id)

    def list_content(self, category: Optional[str] = None) -> List[ContentLink]:
        query = select(ContentLink)
        if category:
            query = query.where(ContentLink.category == category)
        query = query.order_by(col(ContentLink.created_at).desc(), col(ContentLink.id).desc())
        return list(self.db.exec(query).all())

    def delete_content(self, content_id: int) -> bool:
        """Delete a content link together with its comments, their likes and watch rows."""
        comment_ids = select(Comment.id).where(Comment.content_id == content_id)
        self.db.exec(delete(CommentLike).where(col(CommentLike.comment_id).in_(comment_ids)))
        self.db.exec(delete(Comment).where(col(Comment.content_id) == content_id))
        self.db.exec(delete(WatchStatus).where(col(WatchStatus.content_id) == content_id))
        result = self.db.exec(delete(ContentLink).where(col(ContentLink.id) == content_id))
        self.db.commit()
        return result.rowcount > 0

    def _views_increment(self, content_id: int):
        return (
            update(ContentLink)
            .where(col(ContentLink.id) == content_id)
            .values(views=col(ContentLink.views) + 1)
        )

    def increment_views(self, content_id: int) -> None:
        self.db.exec(self._views_increment(content_id))
        self.db.commit()

    def record_view(self, user_id: int, content_id: int) -> Optional[Tuple[int, WatchStatus]]:
        """Count a player view and mark the content watched in one transaction.

        Returns the new view count and watch row, or None when the content
        no longer exists.
        """
        views = self.db.exec(
            self._views_increment(content_id).returning(ContentLink.__table__.c.views)
        ).scalar_one_or_none()
        if views is None:
            self.db.rollback()
            return None
        status = self._upsert_watched(user_id, content_id, True)
        self.db.commit()
        return views, status

    def watchers_for_content(self, content_id: int) -> List[Tuple[str, bool]]:
        rows = self.db.exec(
            select(User.username, WatchStatus.watched)
            .select_from(WatchStatus)
            .join(User, WatchStatus.user_id == User.id)
            .where(WatchStatus.content_id == content_id)
            .order_by(User.username)
        ).all()
        return [(username, watched) for username, watched in rows]

    # Watch status

    def _upsert_watched(self, user_id: int, content_id: int, watched: bool) -> WatchStatus:
        # The returned row is the one this statement wrote, whatever lands after it.
        table = WatchStatus.__table__
        stmt = self._insert(table).values(
            user_id=user_id,
            content_id=content_id,
            watched=watched,
            updated_at=utc_now(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.user_id, table.c.content_id],
            set_={"watched": stmt.excluded.watched, "updated_at": stmt.excluded.updated_at},
        ).returning(*table.c)
        row = self.db.exec(stmt).one()
        return WatchStatus(**row._mapping)

    def set_watched(self, user_id: int, content_id: int, watched: bool) -> WatchStatus:
        status = self._upsert_watched(user_id, content_id, watched)
        self.db.commit()
        logger.debug(f"Watch status for user {user_id} on content {content_id} set to {watched}")
        return status

    def get_watched(self, user_id: int, content_id: int) -> Optional[WatchStatus]:
        return self.db.exec(
            select(WatchStatus).where(
                WatchStatus.user_id == user_id,
                WatchStatus.content_id == content_id,
            )
        ).first()

    # Comments

    def create_comment(self, user_id: int, content_id: int, content: str) -> Comment:
        comment = Comment(user_id=user_id, content_id=content_id, content=content)
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def get_comment(self, comment_id: int) -> Optional[Comment]:
        return self.db.get(Comment, comment_id)

    def list_comments(
        self,
        content_id: int,
        sort_by: CommentSort = "newest",
        viewer_id: Optional[int] = None,
    ) -> List[CommentRow]:
        like_counts = (
            select(CommentLike.comment_id, func.count(CommentLike.id).label("like_count"))
            .group_by(CommentLike.comment_id)
            .subquery()
        )
        like_count = func.coalesce(like_counts.c.like_count, 0)

        query = (
            select(Comment, User.username, like_count.label("like_count"))
            .select_from(Comment)
            .join(User, Comment.user_id == User.id)
            .outerjoin(like_counts, like_counts.c.comment_id == Comment.id)
            .where(Comment.content_id == content_id)
        )
        if sort_by == "oldest":
            query = query.order_by(col(Comment.created_at).asc(), col(Comment.id).asc())
        elif sort_by == "likes":
            # Equal counts fall back to newest first.
            query = query.order_by(
                like_count.desc(), col(Comment.created_at).desc(), col(Comment.id).desc()
            )
        else:
            query = query.order_by(col(Comment.created_at).desc(), col(Comment.id).desc())

        rows = self.db.exec(query).all()
        liked = self._liked_comment_ids(viewer_id, [comment.id for comment, _, _ in rows])
        return [
            CommentRow(
                comment=comment,
                username=username,
                like_count=int(count),
                has_liked=comment.id in liked,
            )
            for comment, username, count in rows
        ]

    def _liked_comment_ids(self, user_id: Optional[int], comment_ids: List[int]) -> set:
        if user_id is None or not comment_ids:
            return set()
        return set(
            self.db.exec(
                select(CommentLike.comment_id).where(
                    CommentLike.user_id == user_id,
                    col(CommentLike.comment_id).in_(comment_ids),
                )
            ).all()
        )

    # Comment likes

    def like(self, user_id: int, comment_id: int) -> bool:
        """Record a like. Returns False when the like already existed."""
        table = CommentLike.__table__
        stmt = (
            self._insert(table)
            .values(user_id=user_id, comment_id=comment_id, created_at=utc_now())
            .on_conflict_do_nothing(index_elements=[table.c.user_id, table.c.comment_id])
        )
        result = self.db.exec(stmt)
        self.db.commit()
        return result.rowcount > 0

    def unlike(self, user_id: int, comment_id: int) -> bool:
        """Remove a like. Returns False when there was nothing to remove."""
        result = self.db.exec(
            delete(CommentLike).where(
                col(CommentLike.user_id) == user_id,
                col(CommentLike.comment_id) == comment_id,
            )
        )
        self.db.commit()
        return result.rowcount > 0

    def has_liked(self, user_id: int, comment_id: int) -> bool:
        return self.db.exec(
            select(CommentLike.id).where(
                CommentLike.user_id == user_id,
                CommentLike.comment_id == comment_id,
            )
        ).first() is not None

    def like_count(self, comment_id: int) -> int:
        return self.db.exec(
            select(func.count())
            .select_from(CommentLike)
            .where(CommentLike.comment_id == comment_id)
        ).one()

    # Analytics

    def content_views(self, coach_id: int) -> List[ContentLink]:
        return list(
            self.db.exec(
                select(ContentLink)
                .where(ContentLink.coach_id == coach_id)
                .order_by(col(ContentLink.views).desc(), col(ContentLink.id).asc())
            ).all()
        )

    def category_views(self, coach_id: int) -> List[Tuple[str, int]]:
        """Summed view counters per category; repeat views by one user count each time."""
        total = func.sum(ContentLink.views)
        rows = self.db.exec(
            select(ContentLink.category, total.label("views"))
            .where(ContentLink.coach_id == coach_id)
            .group_by(ContentLink.category)
            .order_by(total.desc(), col(ContentLink.category).asc())
        ).all()
        return [(category, int(views or 0)) for category, views in rows]

    def unique_viewers(self, coach_id: int) -> List[Tuple[int, str, int]]:
        """Distinct users with watched=true per content link, including links with none."""
        viewers = func.count(func.distinct(WatchStatus.user_id))
        rows = self.db.exec(
            select(ContentLink.id, ContentLink.title, viewers.label("unique_viewers"))
            .select_from(ContentLink)
            .outerjoin(
                WatchStatus,
                and_(
                    WatchStatus.content_id == ContentLink.id,
                    col(WatchStatus.watched).is_(True),
                ),
            )
            .where(ContentLink.coach_id == coach_id)
            .group_by(ContentLink.id, ContentLink.title)
            .order_by(viewers.desc(), col(ContentLink.id).asc())
        ).all()
        return [(content_id, title, int(count)) for content_id, title, count in rows]
