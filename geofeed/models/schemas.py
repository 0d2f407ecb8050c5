"""
Domain models using Pydantic.
All data structures for feed assembly and notification aggregation.
"""
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

UNKNOWN_USER_NAME = "Unknown User"

T = TypeVar("T")


# =============================================================================
# Domain Models (Internal)
# =============================================================================


class VoteType(str, Enum):
    """Vote state of a user on a post."""

    UPVOTE = "UPVOTE"
    DOWNVOTE = "DOWNVOTE"
    NONE = "NONE"


class Post(BaseModel):
    """
    Location-tagged post as read from the post store.
    Never mutated by feed assembly.
    """

    id: UUID = Field(..., description="Post identifier")
    title: Optional[str] = Field(default=None, description="Post title")
    caption: Optional[str] = Field(default=None, description="Post body")
    category: Optional[str] = Field(default=None, description="Category name")
    created_at: Optional[datetime] = Field(default=None, description="Creation time")
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    posted_by: UUID = Field(..., description="Author user id")
    votes: Dict[UUID, bool] = Field(
        default_factory=dict,
        description="Voter id -> True for upvote, False for downvote",
    )

    @property
    def has_location(self) -> bool:
        """Both coordinates are present."""
        return self.latitude is not None and self.longitude is not None

    @property
    def upvote_count(self) -> int:
        return sum(1 for is_upvote in self.votes.values() if is_upvote)

    @property
    def downvote_count(self) -> int:
        return sum(1 for is_upvote in self.votes.values() if not is_upvote)

    def current_vote(self, user_id: Optional[UUID]) -> VoteType:
        """Vote state of the given user on this post."""
        if user_id is None or user_id not in self.votes:
            return VoteType.NONE
        return VoteType.UPVOTE if self.votes[user_id] else VoteType.DOWNVOTE


class AuthorProfile(BaseModel):
    """
    Display data of a user as served by the auth/profile service.
    Accepts the service's camelCase field names.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[UUID] = Field(default=None, alias="userId")
    name: Optional[str] = None
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture")


class CommentOnPost(BaseModel):
    """Top-level comment on a post."""

    id: UUID
    caption: Optional[str] = None
    created_at: datetime
    posted_by: UUID
    post_id: UUID = Field(..., description="Post this comment belongs to")


class CommentOnComment(BaseModel):
    """Reply to a top-level comment."""

    id: UUID
    caption: Optional[str] = None
    created_at: datetime
    posted_by: UUID
    parent_id: UUID = Field(..., description="CommentOnPost this reply belongs to")


class NotificationType(str, Enum):
    """Kinds of comment activity a user is notified about."""

    NEW_COMMENT_ON_POST = "NEW_COMMENT_ON_POST"  # Someone commented on your post
    NEW_REPLY_TO_COMMENT = "NEW_REPLY_TO_COMMENT"  # Someone replied to your comment
    NEW_SIBLING_REPLY = "NEW_SIBLING_REPLY"  # Someone replied in a thread you replied in


class FeedType(str, Enum):
    """Available feed strategies."""

    DISTANCE = "distance"
    TIMESTAMP = "timestamp"
    FOLLOWING = "following"

    @classmethod
    def parse(cls, tag: str) -> Optional["FeedType"]:
        """Case-insensitive lookup, None for unknown tags."""
        try:
            return cls(tag.lower())
        except ValueError:
            return None


# =============================================================================
# Query Models
# =============================================================================


class PageRequest(BaseModel):
    """Zero-based page index and page size."""

    page: int = Field(default=0, ge=0, description="Zero-based page index")
    size: int = Field(default=10, ge=1, description="Page size")

    @property
    def offset(self) -> int:
        return self.page * self.size


class FeedQuery(BaseModel):
    """
    Feed query descriptor.

    Date bounds are inclusive. Coordinates are only required by the
    distance feed.
    """

    user_id: Optional[UUID] = Field(default=None, description="Requesting user")
    categories: Optional[List[str]] = None
    keyword: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    user_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    user_lon: Optional[float] = Field(default=None, ge=-180, le=180)
    radius_km: Optional[float] = Field(default=None, gt=0)
    pageable: PageRequest = Field(default_factory=PageRequest)

    @classmethod
    def from_request(
        cls,
        user_id: Optional[UUID],
        page: int = 0,
        size: int = 10,
        categories: Optional[List[str]] = None,
        keyword: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        radius_km: Optional[float] = None,
    ) -> "FeedQuery":
        """Build a query from calendar-date request parameters."""
        return cls(
            user_id=user_id,
            categories=categories,
            keyword=keyword,
            date_from=datetime.combine(date_from, time.min) if date_from else None,
            date_to=datetime.combine(date_to, time.max) if date_to else None,
            user_lat=lat,
            user_lon=lon,
            radius_km=radius_km,
            pageable=PageRequest(page=page, size=size),
        )


# =============================================================================
# Result Models
# =============================================================================


class PostedBy(BaseModel):
    """Resolved author block attached to a feed row."""

    user_id: UUID
    name: Optional[str] = None
    profile_picture: Optional[str] = None


class PostData(BaseModel):
    """Post enriched with author data and the viewer's vote state."""

    id: UUID
    title: Optional[str] = None
    caption: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: Optional[datetime] = None
    category: Optional[str] = None
    upvote_count: int = 0
    downvote_count: int = 0
    current_vote: VoteType = VoteType.NONE
    posted_by: PostedBy

    @classmethod
    def from_post(
        cls,
        post: Post,
        viewer_id: Optional[UUID],
        profile: Optional[AuthorProfile] = None,
    ) -> "PostData":
        """Enrich a post; a missing profile resolves to the unknown-user placeholder."""
        if profile is None:
            posted_by = PostedBy(user_id=post.posted_by, name=UNKNOWN_USER_NAME)
        else:
            posted_by = PostedBy(
                user_id=post.posted_by,
                name=profile.name or UNKNOWN_USER_NAME,
                profile_picture=profile.profile_picture,
            )

        return cls(
            id=post.id,
            title=post.title,
            caption=post.caption,
            latitude=post.latitude,
            longitude=post.longitude,
            created_at=post.created_at,
            category=post.category,
            upvote_count=post.upvote_count,
            downvote_count=post.downvote_count,
            current_vote=post.current_vote(viewer_id),
            posted_by=posted_by,
        )


class FeedRow(BaseModel):
    """Single feed entry: enriched post plus strategy metadata."""

    post: PostData
    distance: Optional[float] = Field(
        default=None,
        description="Distance from the requester in km (distance feed only)",
    )


class Page(BaseModel, Generic[T]):
    """Slice of an ordered result list."""

    content: List[T] = Field(default_factory=list)
    total_elements: int = 0
    page_index: int = 0
    page_size: int = 10

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total_elements // self.page_size)

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page_index + 1 < self.total_pages

    @computed_field
    @property
    def has_previous(self) -> bool:
        return self.page_index > 0


class NotificationEvent(BaseModel):
    """Derived, never-persisted notification record."""

    type: NotificationType
    actor_user_id: UUID
    actor_name: Optional[str] = None
    actor_profile_picture_url: Optional[str] = None
    time_ago: str
    post_id: Optional[UUID] = None
    comment_id: Optional[UUID] = None
    reply_id: Optional[UUID] = None
    created_at: datetime
    comment_content: Optional[str] = None
    post_title: Optional[str] = None


# =============================================================================
# API Models (External)
# =============================================================================


class ApiResponse(BaseModel):
    """Standard response envelope."""

    success: bool = True
    message: Optional[str] = None
    data: Any = None
