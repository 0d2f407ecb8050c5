"""Repository implementations package."""
from .memory import (
    InMemoryCategoryRepository,
    InMemoryCommentRepository,
    InMemoryPostRepository,
    InMemoryUserProfileService,
    seed_demo_data,
)

__all__ = [
    "InMemoryCategoryRepository",
    "InMemoryCommentRepository",
    "InMemoryPostRepository",
    "InMemoryUserProfileService",
    "seed_demo_data",
]
