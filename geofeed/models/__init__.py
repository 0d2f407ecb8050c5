"""Models package - domain entities and interfaces."""
from .interfaces import (
    CategoryRepository,
    CommentRepository,
    PostRepository,
    UserProfileService,
)
from .schemas import (
    UNKNOWN_USER_NAME,
    ApiResponse,
    AuthorProfile,
    CommentOnComment,
    CommentOnPost,
    FeedQuery,
    FeedRow,
    FeedType,
    NotificationEvent,
    NotificationType,
    Page,
    PageRequest,
    Post,
    PostData,
    PostedBy,
    VoteType,
)

__all__ = [
    # Interfaces
    "CategoryRepository",
    "CommentRepository",
    "PostRepository",
    "UserProfileService",
    # Schemas
    "UNKNOWN_USER_NAME",
    "ApiResponse",
    "AuthorProfile",
    "CommentOnComment",
    "CommentOnPost",
    "FeedQuery",
    "FeedRow",
    "FeedType",
    "NotificationEvent",
    "NotificationType",
    "Page",
    "PageRequest",
    "Post",
    "PostData",
    "PostedBy",
    "VoteType",
]
