"""
Feed strategies.
Each strategy turns candidate posts plus a query into one page of feed rows:
filter, sort by a strategy-specific key, paginate, enrich with author data.
"""
import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID

from geofeed.core.exceptions import ValidationError
from geofeed.core.geo import distance_km
from geofeed.models.interfaces import PostRepository, UserProfileService
from geofeed.models.schemas import (
    AuthorProfile,
    FeedQuery,
    FeedRow,
    Page,
    Post,
    PostData,
)
from geofeed.services.filters import matches_query, matches_radius
from geofeed.services.pagination import empty_page, paginate_request

logger = logging.getLogger(__name__)

ProfileMap = Mapping[UUID, AuthorProfile]


# =============================================================================
# Strategy Interface (Strategy Pattern)
# =============================================================================


class FeedStrategy(ABC):
    """Abstract base class for feed strategies."""

    @abstractmethod
    async def process_feed(
        self,
        posts: Sequence[Post],
        query: FeedQuery,
        profiles: Optional[ProfileMap] = None,
    ) -> Page[FeedRow]:
        """
        Produce one page of feed rows.

        Args:
            posts: Candidate posts (may be ignored by strategies that fetch their own)
            query: Feed query descriptor
            profiles: Pre-fetched author profiles keyed by user id

        Returns:
            Page of enriched feed rows
        """
        pass


class AbstractFeedStrategy(FeedStrategy):
    """Shared filtering, enrichment and pagination helpers."""

    @staticmethod
    def _filter(posts: Sequence[Post], query: FeedQuery) -> List[Post]:
        return [post for post in posts if matches_query(post, query)]

    @staticmethod
    def _to_post_data(
        post: Post,
        query: FeedQuery,
        profiles: Optional[ProfileMap],
    ) -> PostData:
        profile = profiles.get(post.posted_by) if profiles else None
        return PostData.from_post(post, query.user_id, profile)

    @staticmethod
    def _newest_first(posts: Sequence[Post]) -> List[Post]:
        """Stable sort by creation time, newest first; missing timestamps last."""
        return sorted(
            posts,
            key=lambda p: (p.created_at is not None, p.created_at or datetime.min),
            reverse=True,
        )

    def _page_of_rows(
        self,
        posts: Sequence[Post],
        query: FeedQuery,
        profiles: Optional[ProfileMap],
    ) -> Page[FeedRow]:
        """Paginate ordered posts, then enrich only the rows on the page."""
        page = paginate_request(posts, query.pageable)
        page.content = [
            FeedRow(post=self._to_post_data(post, query, profiles))
            for post in page.content
        ]
        return page


# =============================================================================
# Concrete Strategies
# =============================================================================


class DistanceFeedStrategy(AbstractFeedStrategy):
    """Nearest posts first. Requires the requester's coordinates."""

    async def process_feed(
        self,
        posts: Sequence[Post],
        query: FeedQuery,
        profiles: Optional[ProfileMap] = None,
    ) -> Page[FeedRow]:
        if query.user_lat is None or query.user_lon is None:
            raise ValidationError(
                "Latitude and longitude are required for distance feed",
                details={"lat": query.user_lat, "lon": query.user_lon},
            )

        with_distance: List[Tuple[Post, Optional[float]]] = []
        for post in self._filter(posts, query):
            distance = None
            if post.has_location:
                distance = distance_km(
                    query.user_lat, query.user_lon, post.latitude, post.longitude
                )
            if matches_radius(distance, query.radius_km):
                with_distance.append((post, distance))

        # Posts without a location sort after every located post
        with_distance.sort(key=lambda item: math.inf if item[1] is None else item[1])

        page = paginate_request(with_distance, query.pageable)
        page.content = [
            FeedRow(post=self._to_post_data(post, query, profiles), distance=distance)
            for post, distance in page.content
        ]

        logger.debug(
            f"Distance feed: {len(posts)} candidates -> {len(with_distance)} matched -> "
            f"returning {len(page.content)} rows"
        )
        return page


class TimestampFeedStrategy(AbstractFeedStrategy):
    """Most recent posts first."""

    async def process_feed(
        self,
        posts: Sequence[Post],
        query: FeedQuery,
        profiles: Optional[ProfileMap] = None,
    ) -> Page[FeedRow]:
        ordered = self._newest_first(self._filter(posts, query))
        return self._page_of_rows(ordered, query, profiles)


class FollowingFeedStrategy(AbstractFeedStrategy):
    """
    Most recent posts by users the requester follows.
    Fetches its own candidates and author data; the arguments supplied by
    the orchestrator are ignored.
    """

    def __init__(
        self,
        post_repo: PostRepository,
        profile_service: UserProfileService,
    ) -> None:
        self._post_repo = post_repo
        self._profile_service = profile_service

    async def process_feed(
        self,
        posts: Sequence[Post],
        query: FeedQuery,
        profiles: Optional[ProfileMap] = None,
    ) -> Page[FeedRow]:
        following = await self._fetch_following(query.user_id)

        if not following:
            logger.info(f"User {query.user_id} is not following anyone. Returning empty feed.")
            return empty_page(query.pageable)

        candidates = await self._post_repo.fetch_posts_by_author_ids(list(following))

        ordered = self._newest_first(self._filter(candidates, query))
        return self._page_of_rows(ordered, query, following)

    async def _fetch_following(self, user_id: Optional[UUID]) -> Dict[UUID, AuthorProfile]:
        """Followed users keyed by id; any upstream failure means following nobody."""
        if user_id is None:
            return {}

        try:
            followed = await self._profile_service.fetch_following_list(user_id)
        except Exception as e:
            logger.error(f"Error fetching following list for user ID {user_id}: {e}")
            return {}

        if followed is None:
            logger.warning(f"Received null body when fetching following users for userId: {user_id}")
            return {}

        result: Dict[UUID, AuthorProfile] = {}
        for profile in followed:
            if profile is not None and profile.user_id is not None:
                result.setdefault(profile.user_id, profile)
        return result
