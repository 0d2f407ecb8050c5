"""
Post filter predicates shared by every feed strategy.
"""
from datetime import datetime
from typing import Optional, Sequence

from geofeed.models.schemas import FeedQuery, Post


def matches_categories(post: Post, categories: Optional[Sequence[str]]) -> bool:
    """No filter matches everything; otherwise exact category membership."""
    if not categories:
        return True
    return post.category is not None and post.category in categories


def matches_keyword(post: Post, keyword: Optional[str]) -> bool:
    """Case-insensitive substring of title or caption; null fields never match."""
    if not keyword:
        return True
    needle = keyword.lower()
    return any(
        field is not None and needle in field.lower()
        for field in (post.title, post.caption)
    )


def matches_date_range(
    post: Post,
    date_from: Optional[datetime],
    date_to: Optional[datetime],
) -> bool:
    """
    Inclusive date range check.

    An open range matches every post, even one without a timestamp. With at
    least one bound, a post without a timestamp never matches.
    """
    if date_from is None and date_to is None:
        return True

    created_at = post.created_at
    if created_at is None:
        return False
    if date_from is not None and created_at < date_from:
        return False
    if date_to is not None and created_at > date_to:
        return False
    return True


def matches_radius(distance: Optional[float], radius_km: Optional[float]) -> bool:
    """Unknown distances only pass when no radius is requested."""
    if radius_km is None:
        return True
    return distance is not None and distance <= radius_km


def matches_query(post: Post, query: FeedQuery) -> bool:
    """AND of category, keyword and date-range predicates."""
    return (
        matches_categories(post, query.categories)
        and matches_keyword(post, query.keyword)
        and matches_date_range(post, query.date_from, query.date_to)
    )
