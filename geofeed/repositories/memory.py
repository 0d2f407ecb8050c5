"""
In-memory repository implementations.
Used for local development and testing.
Production would replace these with relational-store and auth-service adapters.
"""
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional
from uuid import UUID, NAMESPACE_URL, uuid5

from geofeed.models.schemas import (
    AuthorProfile,
    CommentOnComment,
    CommentOnPost,
    Post,
)


def demo_id(name: str) -> UUID:
    """Stable id for seeded demo entities."""
    return uuid5(NAMESPACE_URL, f"geofeed/{name}")


class InMemoryPostRepository:
    """
    In-memory implementation of PostRepository.
    Simulates the relational post store.
    """

    def __init__(self, posts: Optional[Iterable[Post]] = None) -> None:
        self._posts: Dict[UUID, Post] = {}
        for post in posts or []:
            self.add(post)

    def add(self, post: Post) -> None:
        self._posts[post.id] = post

    def get(self, post_id: UUID) -> Optional[Post]:
        return self._posts.get(post_id)

    async def fetch_all_posts(self) -> List[Post]:
        """Fetch every post."""
        return list(self._posts.values())

    async def fetch_posts_by_author_ids(self, author_ids: Iterable[UUID]) -> List[Post]:
        """Fetch posts authored by any of the given users."""
        wanted = set(author_ids)
        return [post for post in self._posts.values() if post.posted_by in wanted]

    async def fetch_posts_by_author(self, author_id: UUID) -> List[Post]:
        """Fetch posts of a single author."""
        return [post for post in self._posts.values() if post.posted_by == author_id]

    async def find_by_id(self, post_id: UUID) -> Optional[Post]:
        """Look up a post by id."""
        return self._posts.get(post_id)


class InMemoryCategoryRepository:
    """In-memory implementation of CategoryRepository."""

    def __init__(self, names: Optional[Iterable[str]] = None) -> None:
        self._names = set(names or [])

    def add(self, name: str) -> None:
        self._names.add(name)

    async def category_exists(self, name: str) -> bool:
        """Exact-name category lookup."""
        return name in self._names


class InMemoryCommentRepository:
    """
    In-memory implementation of CommentRepository.
    Mirrors the store's queries: activity by the requesting user is never
    reported back to them.
    """

    def __init__(self, post_repo: InMemoryPostRepository) -> None:
        self._post_repo = post_repo
        self._comments: Dict[UUID, CommentOnPost] = {}
        self._replies: Dict[UUID, CommentOnComment] = {}

    def add_comment(self, comment: CommentOnPost) -> None:
        self._comments[comment.id] = comment

    def add_reply(self, reply: CommentOnComment) -> None:
        self._replies[reply.id] = reply

    async def fetch_comments_on_user_posts_since(
        self, user_id: UUID, since: datetime
    ) -> List[CommentOnPost]:
        """Comments by others on the user's posts."""
        result = []
        for comment in self._comments.values():
            post = self._post_repo.get(comment.post_id)
            if (
                post is not None
                and post.posted_by == user_id
                and comment.posted_by != user_id
                and comment.created_at >= since
            ):
                result.append(comment)
        return result

    async def fetch_replies_to_user_comments_since(
        self, user_id: UUID, since: datetime
    ) -> List[CommentOnComment]:
        """Replies by others to the user's comments."""
        result = []
        for reply in self._replies.values():
            parent = self._comments.get(reply.parent_id)
            if (
                parent is not None
                and parent.posted_by == user_id
                and reply.posted_by != user_id
                and reply.created_at >= since
            ):
                result.append(reply)
        return result

    async def fetch_user_replies_since(
        self, user_id: UUID, since: datetime
    ) -> List[CommentOnComment]:
        """Replies written by the user."""
        return [
            reply for reply in self._replies.values()
            if reply.posted_by == user_id and reply.created_at >= since
        ]

    async def fetch_sibling_replies_since(
        self, user_id: UUID, parent_comment_ids: Iterable[UUID], since: datetime
    ) -> List[CommentOnComment]:
        """Replies by others under the given comments."""
        parents = set(parent_comment_ids)
        return [
            reply for reply in self._replies.values()
            if reply.parent_id in parents
            and reply.posted_by != user_id
            and reply.created_at >= since
        ]

    async def find_comment_by_id(self, comment_id: UUID) -> Optional[CommentOnPost]:
        """Look up a top-level comment."""
        return self._comments.get(comment_id)


class InMemoryUserProfileService:
    """
    In-memory implementation of UserProfileService.
    Stands in for the auth microservice when no AUTH_SERVICE_URL is set.
    """

    def __init__(self) -> None:
        self._profiles: Dict[UUID, AuthorProfile] = {}
        self._following: Dict[UUID, List[UUID]] = {}

    def add_profile(self, profile: AuthorProfile) -> None:
        self._profiles[profile.user_id] = profile

    def follow(self, follower_id: UUID, followed_id: UUID) -> None:
        followed = self._following.setdefault(follower_id, [])
        if followed_id not in followed:
            followed.append(followed_id)

    async def fetch_profiles_batch(self, user_ids: Iterable[UUID]) -> Dict[UUID, AuthorProfile]:
        """Profiles for the known ids among user_ids."""
        return {
            user_id: self._profiles[user_id]
            for user_id in dict.fromkeys(user_ids)
            if user_id in self._profiles
        }

    async def fetch_following_list(self, user_id: UUID) -> List[AuthorProfile]:
        """Profiles of followed users (id-only when the profile is unknown)."""
        return [
            self._profiles.get(followed_id, AuthorProfile(user_id=followed_id))
            for followed_id in self._following.get(user_id, [])
        ]


# =============================================================================
# Demo Data
# =============================================================================


DEMO_CATEGORIES = ["Crime", "Traffic", "Lost Item", "Infrastructure", "Public Event"]


def seed_demo_data(
    post_repo: InMemoryPostRepository,
    category_repo: InMemoryCategoryRepository,
    comment_repo: InMemoryCommentRepository,
    profile_service: InMemoryUserProfileService,
    now: Optional[datetime] = None,
) -> None:
    """Load a small neighbourhood of users, posts and comment threads."""
    now = now or datetime.now()
    hour = timedelta(hours=1)
    day = timedelta(days=1)

    for name in DEMO_CATEGORIES:
        category_repo.add(name)

    users = {
        name: demo_id(f"user/{name}")
        for name in ("alice", "bob", "carol", "dave")
    }
    for name, user_id in users.items():
        profile_service.add_profile(
            AuthorProfile(
                user_id=user_id,
                name=name.capitalize(),
                profile_picture=f"https://cdn.example.com/avatars/{name}.png",
            )
        )
    profile_service.follow(users["alice"], users["bob"])
    profile_service.follow(users["alice"], users["carol"])
    profile_service.follow(users["bob"], users["alice"])

    posts = [
        Post(
            id=demo_id("post/flooded-underpass"),
            title="Flooded underpass",
            caption="Water is knee deep under the station underpass, avoid it.",
            category="Infrastructure",
            created_at=now - 2 * hour,
            latitude=-6.3627,
            longitude=106.8270,
            posted_by=users["bob"],
            votes={users["alice"]: True, users["carol"]: True},
        ),
        Post(
            id=demo_id("post/phone-snatching"),
            title="Phone snatching near campus gate",
            caption="Two people on a motorbike grabbed a phone at the north gate.",
            category="Crime",
            created_at=now - day,
            latitude=-6.3551,
            longitude=106.8310,
            posted_by=users["carol"],
            votes={users["bob"]: True, users["dave"]: False},
        ),
        Post(
            id=demo_id("post/traffic-jam"),
            title="Heavy traffic on Margonda",
            caption="Accident blocking two lanes heading north.",
            category="Traffic",
            created_at=now - 5 * hour,
            latitude=-6.3730,
            longitude=106.8340,
            posted_by=users["alice"],
        ),
        Post(
            id=demo_id("post/lost-wallet"),
            title="Lost wallet",
            caption="Brown leather wallet lost around the library.",
            category="Lost Item",
            created_at=now - 3 * day,
            latitude=-6.3650,
            longitude=106.8290,
            posted_by=users["dave"],
        ),
        Post(
            id=demo_id("post/night-market"),
            title="Night market this weekend",
            caption="Food stalls and live music at the city park.",
            category="Public Event",
            created_at=now - 10 * day,
            latitude=-6.2000,
            longitude=106.8166,
            posted_by=users["bob"],
        ),
    ]
    for post in posts:
        post_repo.add(post)

    underpass_comment = CommentOnPost(
        id=demo_id("comment/underpass-1"),
        caption="Still flooded as of now.",
        created_at=now - hour,
        posted_by=users["alice"],
        post_id=demo_id("post/flooded-underpass"),
    )
    traffic_comment = CommentOnPost(
        id=demo_id("comment/traffic-1"),
        caption="Police are on site.",
        created_at=now - 4 * hour,
        posted_by=users["dave"],
        post_id=demo_id("post/traffic-jam"),
    )
    comment_repo.add_comment(underpass_comment)
    comment_repo.add_comment(traffic_comment)

    comment_repo.add_reply(
        CommentOnComment(
            id=demo_id("reply/underpass-1"),
            caption="Thanks for the update!",
            created_at=now - timedelta(minutes=50),
            posted_by=users["carol"],
            parent_id=underpass_comment.id,
        )
    )
    comment_repo.add_reply(
        CommentOnComment(
            id=demo_id("reply/traffic-1"),
            caption="Cleared up now.",
            created_at=now - 3 * hour,
            posted_by=users["alice"],
            parent_id=traffic_comment.id,
        )
    )
    comment_repo.add_reply(
        CommentOnComment(
            id=demo_id("reply/traffic-2"),
            caption="Confirmed, traffic is moving.",
            created_at=now - 2 * hour,
            posted_by=users["bob"],
            parent_id=traffic_comment.id,
        )
    )
