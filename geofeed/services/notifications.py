"""
Notification service.
Derives comment-activity notifications for a user from three comment
relationships over a trailing window. Nothing is persisted; every call
recomputes the list.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from geofeed.core.telemetry import start_span
from geofeed.models.interfaces import (
    CommentRepository,
    PostRepository,
    UserProfileService,
)
from geofeed.models.schemas import (
    UNKNOWN_USER_NAME,
    AuthorProfile,
    CommentOnComment,
    CommentOnPost,
    NotificationEvent,
    NotificationType,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


def time_ago(created_at: datetime, now: datetime) -> str:
    """Calendar-day distance as shown to users."""
    days = (now.date() - created_at.date()).days
    if days <= 0:
        return "Today"
    if days == 1:
        return "1 day ago"
    return f"{days} days ago"


class NotificationService:
    """
    Aggregates notifications from:
    - comments by others on the user's posts
    - replies by others to the user's comments
    - replies by others in comment threads the user has replied in
    """

    def __init__(
            self,
            comment_repo: CommentRepository,
            post_repo: PostRepository,
            profile_service: UserProfileService,
            window_days: int = DEFAULT_WINDOW_DAYS,
            clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._comment_repo = comment_repo
        self._post_repo = post_repo
        self._profile_service = profile_service
        self._window_days = window_days
        self._clock = clock

    async def get_notifications(self, user_id: UUID) -> List[NotificationEvent]:
        """
        Build the user's notifications, most recent first.

        Args:
            user_id: Recipient of the notifications

        Returns:
            Notifications from the trailing window, sorted by creation time
        """
        now = self._clock()
        since = now - timedelta(days=self._window_days)

        with start_span("notifications.fetch", {
            "notifications.user_id": user_id,
            "notifications.window_days": self._window_days,
        }) as span:
            comments_on_posts = await self._comment_repo.fetch_comments_on_user_posts_since(
                user_id, since
            )
            replies_to_comments = await self._comment_repo.fetch_replies_to_user_comments_since(
                user_id, since
            )
            sibling_replies = await self._fetch_sibling_replies(user_id, since)
            span.set_attribute("notifications.comments", len(comments_on_posts))
            span.set_attribute("notifications.replies", len(replies_to_comments))
            span.set_attribute("notifications.sibling_replies", len(sibling_replies))

        actor_ids = {c.posted_by for c in comments_on_posts}
        actor_ids.update(r.posted_by for r in replies_to_comments)
        actor_ids.update(r.posted_by for r in sibling_replies)
        actors = await self._fetch_actors(actor_ids)

        notifications: List[NotificationEvent] = []
        for comment in comments_on_posts:
            notifications.append(
                await self._comment_notification(comment, actors, now)
            )
        for reply in replies_to_comments:
            notifications.append(
                await self._reply_notification(
                    NotificationType.NEW_REPLY_TO_COMMENT, reply, actors, now
                )
            )
        for reply in sibling_replies:
            notifications.append(
                await self._reply_notification(
                    NotificationType.NEW_SIBLING_REPLY, reply, actors, now
                )
            )

        # sort() is stable, so equal timestamps keep source order
        notifications.sort(key=lambda n: n.created_at, reverse=True)

        logger.info(
            f"Notifications built for user={user_id}: "
            f"comments={len(comments_on_posts)}, replies={len(replies_to_comments)}, "
            f"siblings={len(sibling_replies)}",
            extra={"user_id": user_id},
        )
        return notifications

    async def _fetch_sibling_replies(
            self, user_id: UUID, since: datetime
    ) -> List[CommentOnComment]:
        """Replies by others under comments the user replied to; skipped if the user never replied."""
        own_replies = await self._comment_repo.fetch_user_replies_since(user_id, since)
        parent_ids = list(dict.fromkeys(reply.parent_id for reply in own_replies))
        if not parent_ids:
            return []

        return await self._comment_repo.fetch_sibling_replies_since(user_id, parent_ids, since)

    async def _fetch_actors(self, actor_ids: Iterable[UUID]) -> Dict[UUID, AuthorProfile]:
        actor_ids = list(actor_ids)
        if not actor_ids:
            return {}

        try:
            profiles = await self._profile_service.fetch_profiles_batch(actor_ids)
        except Exception as e:
            logger.error(f"Error fetching profiles for {len(actor_ids)} notification actors: {e}")
            return {}

        return profiles or {}

    async def _comment_notification(
            self,
            comment: CommentOnPost,
            actors: Dict[UUID, AuthorProfile],
            now: datetime,
    ) -> NotificationEvent:
        post = await self._post_repo.find_by_id(comment.post_id)

        return self._build(
            NotificationType.NEW_COMMENT_ON_POST,
            actor_id=comment.posted_by,
            actors=actors,
            created_at=comment.created_at,
            now=now,
            post_id=comment.post_id,
            comment_id=comment.id,
            reply_id=None,
            comment_content=comment.caption,
            post_title=post.title if post else None,
        )

    async def _reply_notification(
            self,
            notification_type: NotificationType,
            reply: CommentOnComment,
            actors: Dict[UUID, AuthorProfile],
            now: datetime,
    ) -> NotificationEvent:
        post_id, post_title = await self._resolve_thread_post(reply)

        return self._build(
            notification_type,
            actor_id=reply.posted_by,
            actors=actors,
            created_at=reply.created_at,
            now=now,
            post_id=post_id,
            comment_id=reply.parent_id,
            reply_id=reply.id,
            comment_content=reply.caption,
            post_title=post_title,
        )

    async def _resolve_thread_post(
            self, reply: CommentOnComment
    ) -> Tuple[Optional[UUID], Optional[str]]:
        """Follow reply -> comment -> post; a broken link yields None."""
        comment = await self._comment_repo.find_comment_by_id(reply.parent_id)
        if comment is None:
            return None, None

        post = await self._post_repo.find_by_id(comment.post_id)
        return comment.post_id, post.title if post else None

    @staticmethod
    def _build(
            notification_type: NotificationType,
            actor_id: UUID,
            actors: Dict[UUID, AuthorProfile],
            created_at: datetime,
            now: datetime,
            **fields,
    ) -> NotificationEvent:
        actor = actors.get(actor_id)

        return NotificationEvent(
            type=notification_type,
            actor_user_id=actor_id,
            actor_name=actor.name if actor and actor.name else UNKNOWN_USER_NAME,
            actor_profile_picture_url=actor.profile_picture if actor else None,
            time_ago=time_ago(created_at, now),
            created_at=created_at,
            **fields,
        )
