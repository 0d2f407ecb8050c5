"""Clients package - adapters for other microservices."""
from .auth_service import AuthServiceClient

__all__ = ["AuthServiceClient"]
