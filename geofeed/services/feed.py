"""
Feed service - feed assembly orchestrator.
Validates the query, selects a strategy by feed type and supplies it with
candidate posts and author profiles.
"""
import logging
import time
from typing import Dict, Iterable, List, Mapping, Optional
from uuid import UUID

from geofeed.core.exceptions import InvalidPostDataError, ValidationError
from geofeed.core.telemetry import start_span
from geofeed.models.interfaces import (
    CategoryRepository,
    PostRepository,
    UserProfileService,
)
from geofeed.models.schemas import (
    AuthorProfile,
    FeedQuery,
    FeedRow,
    FeedType,
    Page,
    PageRequest,
)
from geofeed.services.strategies import (
    DistanceFeedStrategy,
    FeedStrategy,
    FollowingFeedStrategy,
    TimestampFeedStrategy,
)

logger = logging.getLogger(__name__)


class FeedService:
    """
    Main feed service orchestrating feed assembly.

    Responsibilities:
    - Validate feed type and requested categories
    - Dispatch to the strategy registered for the feed type
    - Fetch candidate posts and author profiles for strategies that need them
    """

    def __init__(
            self,
            post_repo: PostRepository,
            category_repo: CategoryRepository,
            profile_service: UserProfileService,
            strategies: Optional[Mapping[FeedType, FeedStrategy]] = None,
    ) -> None:
        """
        Initialize feed service with dependencies.

        Args:
            post_repo: Repository for posts
            category_repo: Repository for category lookups
            profile_service: Auth/profile service client
            strategies: Strategy registry (default: distance, timestamp, following)
        """
        self._post_repo = post_repo
        self._category_repo = category_repo
        self._profile_service = profile_service
        self._strategies: Dict[FeedType, FeedStrategy] = dict(strategies or {
            FeedType.DISTANCE: DistanceFeedStrategy(),
            FeedType.TIMESTAMP: TimestampFeedStrategy(),
            FeedType.FOLLOWING: FollowingFeedStrategy(post_repo, profile_service),
        })

    async def get_feed(self, query: FeedQuery, feed_type: Optional[str]) -> Page[FeedRow]:
        """
        Get one page of a feed.

        Args:
            query: Feed query descriptor
            feed_type: "distance", "timestamp" or "following" (case-insensitive)

        Returns:
            Page of enriched feed rows

        Raises:
            ValidationError: Missing or unknown feed type, missing coordinates
            InvalidPostDataError: A requested category does not exist
        """
        start_time = time.time()

        if feed_type is None:
            raise ValidationError("Feed type is required")

        if query.categories:
            await self._validate_categories(query.categories)

        resolved = self._resolve_feed_type(feed_type)
        strategy = self._strategies[resolved]

        with start_span("feed.assemble", {
            "feed.type": resolved.value,
            "feed.user_id": query.user_id,
            "feed.page": query.pageable.page,
        }) as span:
            if resolved is FeedType.FOLLOWING:
                page = await strategy.process_feed([], query, None)
            else:
                posts = await self._post_repo.fetch_all_posts()
                span.set_attribute("feed.candidates", len(posts))
                profiles = await self._fetch_profiles(post.posted_by for post in posts)
                page = await strategy.process_feed(posts, query, profiles)
            span.set_attribute("feed.total_elements", page.total_elements)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Feed served: type={resolved.value}, user={query.user_id}, "
            f"rows={len(page.content)}, total={page.total_elements}, "
            f"elapsed_ms={elapsed_ms:.2f}",
            extra={"user_id": query.user_id, "feed_type": resolved.value},
        )
        return page

    async def get_posts_by_user(
            self,
            author_id: UUID,
            viewer_id: Optional[UUID],
            pageable: PageRequest,
    ) -> Page[FeedRow]:
        """Posts of one author, newest first."""
        if author_id is None:
            raise ValidationError("Post user ID is required")

        posts = await self._post_repo.fetch_posts_by_author(author_id)
        profiles = await self._fetch_profiles([author_id])

        query = FeedQuery(user_id=viewer_id, pageable=pageable)
        return await self._strategies[FeedType.TIMESTAMP].process_feed(posts, query, profiles)

    def _resolve_feed_type(self, feed_type: str) -> FeedType:
        resolved = FeedType.parse(feed_type)
        if resolved is None or resolved not in self._strategies:
            raise ValidationError(
                f"Invalid feed type: {feed_type}",
                details={"feed_type": feed_type},
            )
        return resolved

    async def _validate_categories(self, categories: List[str]) -> None:
        """Fail on the first unknown category; nothing is partially applied."""
        for category in categories:
            if not await self._category_repo.category_exists(category):
                raise InvalidPostDataError(
                    f"Category does not exist: {category}",
                    details={"category": category},
                )

    async def _fetch_profiles(self, author_ids: Iterable[UUID]) -> Dict[UUID, AuthorProfile]:
        """One batch lookup for the distinct authors; failures degrade to no profiles."""
        distinct_ids = list(dict.fromkeys(author_ids))
        if not distinct_ids:
            return {}

        try:
            profiles = await self._profile_service.fetch_profiles_batch(distinct_ids)
        except Exception as e:
            logger.error(
                f"Profile lookup failed for {len(distinct_ids)} authors, "
                f"serving feed without author data: {e}"
            )
            return {}

        return profiles or {}
