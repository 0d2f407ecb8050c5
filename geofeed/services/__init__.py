"""Services package - business logic layer."""
from .feed import FeedService
from .notifications import NotificationService
from .strategies import (
    AbstractFeedStrategy,
    DistanceFeedStrategy,
    FeedStrategy,
    FollowingFeedStrategy,
    TimestampFeedStrategy,
)

__all__ = [
    "AbstractFeedStrategy",
    "DistanceFeedStrategy",
    "FeedService",
    "FeedStrategy",
    "FollowingFeedStrategy",
    "NotificationService",
    "TimestampFeedStrategy",
]
