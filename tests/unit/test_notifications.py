"""
Unit tests for NotificationService.
"""
from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from geofeed.core.exceptions import UpstreamServiceError
from geofeed.models.schemas import (
    UNKNOWN_USER_NAME,
    AuthorProfile,
    CommentOnComment,
    CommentOnPost,
    NotificationType,
)
from geofeed.services.notifications import NotificationService, time_ago


class TestTimeAgo:
    def test_same_day(self):
        now = datetime(2024, 6, 15, 23, 59)
        assert time_ago(datetime(2024, 6, 15, 0, 1), now) == "Today"

    def test_calendar_days_not_elapsed_hours(self):
        # Two minutes apart but across midnight
        now = datetime(2024, 6, 15, 0, 1)
        assert time_ago(datetime(2024, 6, 14, 23, 59), now) == "1 day ago"

    def test_plural(self):
        now = datetime(2024, 6, 15, 12, 0)
        assert time_ago(datetime(2024, 6, 10, 12, 0), now) == "5 days ago"

    def test_future_is_today(self):
        now = datetime(2024, 6, 15, 12, 0)
        assert time_ago(datetime(2024, 6, 17, 12, 0), now) == "Today"


@pytest.fixture
def world(post_repo, comment_repo, profile_service, make_post, now):
    """
    Small comment graph around one user ("me"):
    - other commented on my post
    - other replied to my comment on their post
    - I replied to other's comment, then third replied in the same thread
    """
    me, other, third = uuid4(), uuid4(), uuid4()
    profile_service.add_profile(AuthorProfile(user_id=other, name="Other", profile_picture="o.png"))
    profile_service.add_profile(AuthorProfile(user_id=third, name="Third"))

    my_post = make_post(title="My post", posted_by=me)
    their_post = make_post(title="Their post", posted_by=other)
    post_repo.add(my_post)
    post_repo.add(their_post)

    comment_on_mine = CommentOnPost(
        id=uuid4(), caption="Nice", created_at=now - timedelta(hours=3),
        posted_by=other, post_id=my_post.id,
    )
    my_comment = CommentOnPost(
        id=uuid4(), caption="Mine", created_at=now - timedelta(days=2),
        posted_by=me, post_id=their_post.id,
    )
    their_comment = CommentOnPost(
        id=uuid4(), caption="Theirs", created_at=now - timedelta(days=2),
        posted_by=other, post_id=their_post.id,
    )
    for comment in (comment_on_mine, my_comment, their_comment):
        comment_repo.add_comment(comment)

    reply_to_mine = CommentOnComment(
        id=uuid4(), caption="Agreed", created_at=now - timedelta(days=1),
        posted_by=other, parent_id=my_comment.id,
    )
    my_reply = CommentOnComment(
        id=uuid4(), caption="Me too", created_at=now - timedelta(days=1, hours=2),
        posted_by=me, parent_id=their_comment.id,
    )
    sibling = CommentOnComment(
        id=uuid4(), caption="Same here", created_at=now - timedelta(hours=1),
        posted_by=third, parent_id=their_comment.id,
    )
    for reply in (reply_to_mine, my_reply, sibling):
        comment_repo.add_reply(reply)

    return {
        "me": me,
        "other": other,
        "third": third,
        "my_post": my_post,
        "their_post": their_post,
        "comment_on_mine": comment_on_mine,
        "my_comment": my_comment,
        "their_comment": their_comment,
        "reply_to_mine": reply_to_mine,
        "sibling": sibling,
    }


class TestNotificationService:
    @pytest.mark.asyncio
    async def test_all_three_kinds_newest_first(self, notification_service, world):
        events = await notification_service.get_notifications(world["me"])

        assert [e.type for e in events] == [
            NotificationType.NEW_SIBLING_REPLY,
            NotificationType.NEW_COMMENT_ON_POST,
            NotificationType.NEW_REPLY_TO_COMMENT,
        ]
        created = [e.created_at for e in events]
        assert created == sorted(created, reverse=True)

    @pytest.mark.asyncio
    async def test_comment_on_post_fields(self, notification_service, world):
        events = await notification_service.get_notifications(world["me"])
        event = next(e for e in events if e.type == NotificationType.NEW_COMMENT_ON_POST)

        assert event.actor_user_id == world["other"]
        assert event.actor_name == "Other"
        assert event.actor_profile_picture_url == "o.png"
        assert event.post_id == world["my_post"].id
        assert event.post_title == "My post"
        assert event.comment_id == world["comment_on_mine"].id
        assert event.reply_id is None
        assert event.comment_content == "Nice"
        assert event.time_ago == "Today"

    @pytest.mark.asyncio
    async def test_reply_fields_resolve_thread_post(self, notification_service, world):
        events = await notification_service.get_notifications(world["me"])
        event = next(e for e in events if e.type == NotificationType.NEW_REPLY_TO_COMMENT)

        assert event.reply_id == world["reply_to_mine"].id
        assert event.comment_id == world["my_comment"].id
        assert event.post_id == world["their_post"].id
        assert event.post_title == "Their post"
        assert event.time_ago == "1 day ago"

    @pytest.mark.asyncio
    async def test_sibling_reply_fields(self, notification_service, world):
        events = await notification_service.get_notifications(world["me"])
        event = next(e for e in events if e.type == NotificationType.NEW_SIBLING_REPLY)

        assert event.actor_user_id == world["third"]
        assert event.actor_profile_picture_url is None
        assert event.comment_id == world["their_comment"].id
        assert event.reply_id == world["sibling"].id

    @pytest.mark.asyncio
    async def test_own_activity_is_not_reported(self, notification_service, world):
        events = await notification_service.get_notifications(world["me"])

        assert all(e.actor_user_id != world["me"] for e in events)

    @pytest.mark.asyncio
    async def test_window_excludes_old_activity(
        self, notification_service, comment_repo, world, now
    ):
        comment_repo.add_comment(
            CommentOnPost(
                id=uuid4(), caption="Ancient", created_at=now - timedelta(days=31),
                posted_by=world["other"], post_id=world["my_post"].id,
            )
        )

        events = await notification_service.get_notifications(world["me"])

        assert all(e.comment_content != "Ancient" for e in events)
        assert len(events) == 3

    @pytest.mark.asyncio
    async def test_profile_failure_degrades_to_placeholder(
        self, comment_repo, post_repo, world, now
    ):
        profile_service = AsyncMock()
        profile_service.fetch_profiles_batch.side_effect = UpstreamServiceError(
            "auth_service", "network error"
        )
        service = NotificationService(comment_repo, post_repo, profile_service, clock=lambda: now)

        events = await service.get_notifications(world["me"])

        assert len(events) == 3
        assert all(e.actor_name == UNKNOWN_USER_NAME for e in events)
        assert all(e.actor_profile_picture_url is None for e in events)

    @pytest.mark.asyncio
    async def test_nameless_actor_uses_placeholder(
        self, notification_service, profile_service, world
    ):
        profile_service.add_profile(AuthorProfile(user_id=world["third"], profile_picture="t.png"))

        events = await notification_service.get_notifications(world["me"])

        [sibling] = [e for e in events if e.actor_user_id == world["third"]]
        assert sibling.actor_name == UNKNOWN_USER_NAME
        assert sibling.actor_profile_picture_url == "t.png"

    @pytest.mark.asyncio
    async def test_aggregation_is_traced(self, notification_service, world, span_exporter):
        await notification_service.get_notifications(world["me"])

        [span] = span_exporter.get_finished_spans()
        assert span.name == "geofeed.notifications.fetch"
        assert span.attributes["notifications.user_id"] == str(world["me"])
        assert span.attributes["notifications.comments"] == 1
        assert span.attributes["notifications.replies"] == 1
        assert span.attributes["notifications.sibling_replies"] == 1

    @pytest.mark.asyncio
    async def test_no_activity(self, notification_service):
        assert await notification_service.get_notifications(uuid4()) == []


class TestNotificationServiceCalls:
    @pytest.fixture
    def comment_repo_mock(self):
        repo = AsyncMock()
        repo.fetch_comments_on_user_posts_since.return_value = []
        repo.fetch_replies_to_user_comments_since.return_value = []
        repo.fetch_user_replies_since.return_value = []
        repo.fetch_sibling_replies_since.return_value = []
        return repo

    @pytest.mark.asyncio
    async def test_sibling_query_skipped_without_own_replies(self, comment_repo_mock, now):
        profile_service = AsyncMock()
        service = NotificationService(
            comment_repo_mock, AsyncMock(), profile_service, clock=lambda: now
        )

        await service.get_notifications(uuid4())

        comment_repo_mock.fetch_sibling_replies_since.assert_not_awaited()
        profile_service.fetch_profiles_batch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sibling_query_uses_distinct_parents(self, comment_repo_mock, now):
        user_id, parent_id = uuid4(), uuid4()
        comment_repo_mock.fetch_user_replies_since.return_value = [
            CommentOnComment(id=uuid4(), caption="a", created_at=now, posted_by=user_id, parent_id=parent_id),
            CommentOnComment(id=uuid4(), caption="b", created_at=now, posted_by=user_id, parent_id=parent_id),
        ]
        service = NotificationService(
            comment_repo_mock, AsyncMock(), AsyncMock(), window_days=7, clock=lambda: now
        )

        await service.get_notifications(user_id)

        comment_repo_mock.fetch_sibling_replies_since.assert_awaited_once_with(
            user_id, [parent_id], now - timedelta(days=7)
        )

    @pytest.mark.asyncio
    async def test_broken_thread_yields_null_post(self, comment_repo_mock, now):
        user_id = uuid4()
        comment_repo_mock.fetch_replies_to_user_comments_since.return_value = [
            CommentOnComment(id=uuid4(), caption="orphan", created_at=now, posted_by=uuid4(), parent_id=uuid4()),
        ]
        comment_repo_mock.find_comment_by_id.return_value = None
        profile_service = AsyncMock()
        profile_service.fetch_profiles_batch.return_value = {}
        service = NotificationService(
            comment_repo_mock, AsyncMock(), profile_service, clock=lambda: now
        )

        events = await service.get_notifications(user_id)

        assert len(events) == 1
        assert events[0].post_id is None
        assert events[0].post_title is None
