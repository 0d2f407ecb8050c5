"""
Collaborator interfaces (abstractions).
Using Protocol for structural subtyping (duck typing with type hints).
Persistence and the auth/profile microservice live behind these contracts.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable
from uuid import UUID

from geofeed.models.schemas import AuthorProfile, CommentOnComment, CommentOnPost, Post


@runtime_checkable
class PostRepository(Protocol):
    """
    Read access to posts.
    Production: relational store.
    Testing: In-memory implementation.
    """

    async def fetch_all_posts(self) -> List[Post]:
        """Fetch every post (feed candidates)."""
        ...

    async def fetch_posts_by_author_ids(self, author_ids: Iterable[UUID]) -> List[Post]:
        """Fetch posts authored by any of the given users."""
        ...

    async def fetch_posts_by_author(self, author_id: UUID) -> List[Post]:
        """Fetch posts of a single author."""
        ...

    async def find_by_id(self, post_id: UUID) -> Optional[Post]:
        """
        Look up a post.

        Returns:
            Post if found, None otherwise
        """
        ...


@runtime_checkable
class CategoryRepository(Protocol):
    """Read access to the category catalogue."""

    async def category_exists(self, name: str) -> bool:
        """Check that a category with this exact name exists."""
        ...


@runtime_checkable
class CommentRepository(Protocol):
    """
    Read access to comments (on posts) and replies (on comments).
    All "since" bounds are inclusive.
    """

    async def fetch_comments_on_user_posts_since(
        self, user_id: UUID, since: datetime
    ) -> List[CommentOnPost]:
        """Comments by other users on posts authored by user_id."""
        ...

    async def fetch_replies_to_user_comments_since(
        self, user_id: UUID, since: datetime
    ) -> List[CommentOnComment]:
        """Replies by other users to comments authored by user_id."""
        ...

    async def fetch_user_replies_since(
        self, user_id: UUID, since: datetime
    ) -> List[CommentOnComment]:
        """Replies authored by user_id."""
        ...

    async def fetch_sibling_replies_since(
        self, user_id: UUID, parent_comment_ids: Iterable[UUID], since: datetime
    ) -> List[CommentOnComment]:
        """Replies by other users under the given parent comments."""
        ...

    async def find_comment_by_id(self, comment_id: UUID) -> Optional[CommentOnPost]:
        """Look up a top-level comment, None if missing."""
        ...


@runtime_checkable
class UserProfileService(Protocol):
    """
    Auth/profile microservice.
    Production: HTTP client.
    Testing: In-memory implementation.
    """

    async def fetch_profiles_batch(self, user_ids: Iterable[UUID]) -> Dict[UUID, AuthorProfile]:
        """
        Fetch display data for a set of users.

        Duplicate ids collapse to one lookup; unknown ids are absent from
        the result.
        """
        ...

    async def fetch_following_list(self, user_id: UUID) -> List[AuthorProfile]:
        """Profiles of the users that user_id follows."""
        ...
