"""Core infrastructure components."""
from .circuit_breaker import CircuitBreaker, CircuitState
from .exceptions import (
    AppException,
    CircuitBreakerOpenError,
    InvalidPostDataError,
    UpstreamServiceError,
    ValidationError,
)
from .geo import distance_km

__all__ = [
    "AppException",
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "InvalidPostDataError",
    "UpstreamServiceError",
    "ValidationError",
    "distance_km",
]
