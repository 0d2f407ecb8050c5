"""
Dependency injection container.
Creates and wires all application components.
Uses FastAPI's dependency injection system.
"""
from functools import lru_cache

from geofeed.clients.auth_service import AuthServiceClient
from geofeed.config import get_settings
from geofeed.core.circuit_breaker import CircuitBreaker
from geofeed.models.interfaces import UserProfileService
from geofeed.repositories.memory import (
    InMemoryCategoryRepository,
    InMemoryCommentRepository,
    InMemoryPostRepository,
    InMemoryUserProfileService,
    seed_demo_data,
)
from geofeed.services.feed import FeedService
from geofeed.services.notifications import NotificationService


# =============================================================================
# Singleton Instances (Application Lifetime)
# =============================================================================


@lru_cache()
def get_post_repository() -> InMemoryPostRepository:
    """Get singleton post repository."""
    return InMemoryPostRepository()


@lru_cache()
def get_category_repository() -> InMemoryCategoryRepository:
    """Get singleton category repository."""
    return InMemoryCategoryRepository()


@lru_cache()
def get_comment_repository() -> InMemoryCommentRepository:
    """Get singleton comment repository."""
    return InMemoryCommentRepository(get_post_repository())


@lru_cache()
def get_user_directory() -> InMemoryUserProfileService:
    """Get singleton in-memory profile directory (used without an auth service)."""
    return InMemoryUserProfileService()


@lru_cache()
def get_auth_circuit_breaker() -> CircuitBreaker:
    """Get singleton circuit breaker for the auth service."""
    settings = get_settings()
    return CircuitBreaker(
        name="auth_service",
        failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
        recovery_timeout_sec=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC,
    )


@lru_cache()
def get_auth_service_client() -> AuthServiceClient:
    """Get singleton HTTP client for the auth service."""
    settings = get_settings()
    return AuthServiceClient(
        base_url=settings.AUTH_SERVICE_URL,
        timeout_sec=settings.AUTH_SERVICE_TIMEOUT_SEC,
        circuit_breaker=get_auth_circuit_breaker(),
    )


def get_profile_service() -> UserProfileService:
    """Auth service client when configured, in-memory directory otherwise."""
    if get_settings().AUTH_SERVICE_URL:
        return get_auth_service_client()
    return get_user_directory()


@lru_cache()
def load_demo_data() -> bool:
    """Seed the in-memory stores once, if enabled."""
    if not get_settings().SEED_DEMO_DATA:
        return False
    seed_demo_data(
        get_post_repository(),
        get_category_repository(),
        get_comment_repository(),
        get_user_directory(),
    )
    return True


# =============================================================================
# Request-Scoped Dependencies (Per-Request Lifetime)
# =============================================================================


def get_feed_service() -> FeedService:
    """Get feed service with all dependencies wired."""
    return FeedService(
        post_repo=get_post_repository(),
        category_repo=get_category_repository(),
        profile_service=get_profile_service(),
    )


def get_notification_service() -> NotificationService:
    """Get notification service with all dependencies wired."""
    return NotificationService(
        comment_repo=get_comment_repository(),
        post_repo=get_post_repository(),
        profile_service=get_profile_service(),
        window_days=get_settings().NOTIFICATION_WINDOW_DAYS,
    )


# =============================================================================
# Cleanup Functions
# =============================================================================


def clear_caches() -> None:
    """Clear all cached singleton instances (for testing)."""
    get_post_repository.cache_clear()
    get_category_repository.cache_clear()
    get_comment_repository.cache_clear()
    get_user_directory.cache_clear()
    get_auth_circuit_breaker.cache_clear()
    get_auth_service_client.cache_clear()
    load_demo_data.cache_clear()
