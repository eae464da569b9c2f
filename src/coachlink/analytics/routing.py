import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from coachlink.auth.utils import require_coach
from coachlink.db.models import User
from coachlink.db.session import get_session
from coachlink.db.storage import Storage
from .models import (
    AnalyticsResponse,
    CategoryViewStat,
    ContentViewStat,
    UniqueViewerStat,
)

logger = logging.getLogger("analytics")

router = APIRouter(tags=["analytics"])


@router.get("", response_model=AnalyticsResponse)
def get_analytics(
    db: Session = Depends(get_session),
    current_user: User = Depends(require_coach),
):
    """
    Aggregated metrics for the calling coach's own content.
    - Returns: per-content views, summed views per category, unique viewers per content
    """
    storage = Storage(db)
    content_views = storage.content_views(current_user.id)
    category_views = storage.category_views(current_user.id)
    unique_viewers = storage.unique_viewers(current_user.id)
    logger.info(f"Computed analytics for coach {current_user.id} over {len(content_views)} items")

    return AnalyticsResponse(
        content_views=[
            ContentViewStat(id=c.id, title=c.title, category=c.category, views=c.views)
            for c in content_views
        ],
        category_views=[
            CategoryViewStat(category=category, views=views)
            for category, views in category_views
        ],
        unique_viewers=[
            UniqueViewerStat(content_id=content_id, title=title, unique_viewers=count)
            for content_id, title, count in unique_viewers
        ],
    )
