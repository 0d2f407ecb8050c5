"""
Feed API router.
Implements the GET /posts/feed/{feed_type} and GET /posts/user endpoints.
"""
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Path, Query

from geofeed.api.dependencies import get_feed_service
from geofeed.config import get_settings
from geofeed.models.schemas import ApiResponse, FeedQuery, PageRequest
from geofeed.services.feed import FeedService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["feed"])


def _page_size(size: Optional[int]) -> int:
    """Default and ceiling for the page size come from settings."""
    settings = get_settings()
    if size is None:
        return settings.DEFAULT_PAGE_SIZE
    return min(size, settings.MAX_PAGE_SIZE)


@router.get(
    "/feed/{feed_type}",
    response_model=ApiResponse,
    summary="Get Feed",
    description="""
    Retrieve one page of a feed.

    **Feed types:**
    - `distance`: nearest first, requires `lat` and `lon`, optional `radius` in km
    - `timestamp`: newest first
    - `following`: newest first, restricted to authors the requester follows

    Category, keyword and date-range filters apply to every feed type.
    """,
    responses={
        200: {"description": "Feed page returned successfully"},
        400: {"description": "Unknown feed type, unknown category or missing coordinates"},
    },
)
async def get_feed(
    feed_type: str = Path(..., description="distance, timestamp or following"),
    lat: Optional[float] = Query(default=None, ge=-90, le=90, description="Requester latitude"),
    lon: Optional[float] = Query(default=None, ge=-180, le=180, description="Requester longitude"),
    radius: Optional[float] = Query(default=None, gt=0, description="Radius in km"),
    categories: Optional[List[str]] = Query(default=None, description="Category names"),
    keyword: Optional[str] = Query(default=None, description="Title or caption substring"),
    date_from: Optional[date] = Query(default=None, alias="dateFrom"),
    date_to: Optional[date] = Query(default=None, alias="dateTo"),
    page: int = Query(default=0, ge=0, description="Zero-based page index"),
    size: Optional[int] = Query(default=None, ge=1, description="Page size"),
    x_user_id: Optional[UUID] = Header(
        default=None,
        alias="X-User-ID",
        description="Requesting user",
    ),
    feed_service: FeedService = Depends(get_feed_service),
) -> ApiResponse:
    """Get one page of the requested feed."""
    query = FeedQuery.from_request(
        user_id=x_user_id,
        page=page,
        size=_page_size(size),
        categories=categories,
        keyword=keyword,
        date_from=date_from,
        date_to=date_to,
        lat=lat,
        lon=lon,
        radius_km=radius,
    )

    result = await feed_service.get_feed(query, feed_type)
    return ApiResponse(success=True, data=result)


@router.get(
    "/user",
    response_model=ApiResponse,
    summary="Get Posts By User",
    description="Retrieve one page of a single author's posts, newest first.",
)
async def get_posts_by_user(
    post_user_id: UUID = Query(..., alias="postUserId", description="Author whose posts to list"),
    page: int = Query(default=0, ge=0, description="Zero-based page index"),
    size: Optional[int] = Query(default=None, ge=1, description="Page size"),
    x_user_id: Optional[UUID] = Header(
        default=None,
        alias="X-User-ID",
        description="Requesting user",
    ),
    feed_service: FeedService = Depends(get_feed_service),
) -> ApiResponse:
    """Get posts by author endpoint."""
    result = await feed_service.get_posts_by_user(
        author_id=post_user_id,
        viewer_id=x_user_id,
        pageable=PageRequest(page=page, size=_page_size(size)),
    )
    return ApiResponse(success=True, data=result)
