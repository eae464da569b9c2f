from typing import List

from pydantic import BaseModel


class ContentViewStat(BaseModel):
    id: int
    title: str
    category: str
    views: int


class CategoryViewStat(BaseModel):
    category: str
    views: int


class UniqueViewerStat(BaseModel):
    content_id: int
    title: str
    unique_viewers: int


class AnalyticsResponse(BaseModel):
    """Per-coach rollups.

    ``content_views`` and ``category_views`` come from the view counter and so
    count every view event; ``unique_viewers`` counts distinct users who have
    the content marked as watched.
    """
    content_views: List[ContentViewStat]
    category_views: List[CategoryViewStat]
    unique_viewers: List[UniqueViewerStat]
