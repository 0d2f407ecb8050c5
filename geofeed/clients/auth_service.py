"""
Auth service client for inter-service communication.
Resolves user profiles and the follow graph over HTTP.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import httpx
from opentelemetry.trace import Span
from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from geofeed.core.circuit_breaker import CircuitBreaker
from geofeed.core.exceptions import UpstreamServiceError
from geofeed.core.telemetry import start_span
from geofeed.models.schemas import AuthorProfile

logger = logging.getLogger(__name__)

SERVICE_NAME = "auth_service"
PROFILE_BATCH_PATH = "/api/profiles/batch"
FOLLOWING_PATH = "/api/follow/following/{user_id}"


class ProfileBatchResponse(BaseModel):
    """Body of the batch profile endpoint."""

    profiles: Optional[List[Optional[AuthorProfile]]] = Field(default=None)


_profile_list = TypeAdapter(Optional[List[Optional[AuthorProfile]]])


class AuthServiceClient:
    """
    HTTP implementation of UserProfileService.

    Every failure (transport, non-2xx status, malformed body) is raised as
    UpstreamServiceError; callers decide how to degrade.
    """

    def __init__(
        self,
        base_url: str,
        timeout_sec: float = 5.0,
        circuit_breaker: Optional[CircuitBreaker] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_sec, connect=min(timeout_sec, 5.0))
        self._breaker = circuit_breaker or CircuitBreaker(name=SERVICE_NAME)
        self._client = client

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._breaker

    async def start(self) -> None:
        """Initialize HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            logger.info(f"Auth service client initialized for {self._base_url}")

    async def stop(self) -> None:
        """Close HTTP client"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Auth service client closed")

    async def fetch_profiles_batch(self, user_ids: Iterable[UUID]) -> Dict[UUID, AuthorProfile]:
        """POST the distinct ids to the batch endpoint and index the answer by id."""
        distinct_ids = list(dict.fromkeys(user_ids))
        if not distinct_ids:
            logger.warning("fetch_profiles_batch called with an empty id list")
            return {}

        url = self._base_url + PROFILE_BATCH_PATH
        logger.info(f"Fetching profiles for {len(distinct_ids)} distinct users from {url}")

        body = await self._request(
            "POST", url, json={"userIds": [str(user_id) for user_id in distinct_ids]}
        )
        try:
            parsed = ProfileBatchResponse.model_validate(body)
        except PydanticValidationError as e:
            raise UpstreamServiceError(SERVICE_NAME, f"malformed profile batch: {e}") from e

        if parsed.profiles is None:
            logger.warning("Received null profiles list from batch user profile endpoint")
            return {}

        result: Dict[UUID, AuthorProfile] = {}
        for profile in parsed.profiles:
            if profile is None or profile.user_id is None:
                continue
            if profile.user_id in result:
                logger.warning(f"Duplicate profile ID {profile.user_id} received from batch endpoint. Using the first one.")
                continue
            result[profile.user_id] = profile

        logger.info(f"Successfully fetched {len(result)} profiles")
        return result

    async def fetch_following_list(self, user_id: UUID) -> List[AuthorProfile]:
        """Profiles of the users user_id follows; a null body means nobody."""
        url = self._base_url + FOLLOWING_PATH.format(user_id=user_id)

        body = await self._request("GET", url)
        try:
            followed = _profile_list.validate_python(body)
        except PydanticValidationError as e:
            raise UpstreamServiceError(SERVICE_NAME, f"malformed following list: {e}") from e

        return [profile for profile in followed or [] if profile is not None]

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Make HTTP request through the circuit breaker and decode JSON."""
        if self._client is None:
            await self.start()

        async def send() -> Any:
            with start_span("auth_service.request", {
                "http.method": method,
                "http.url": url,
                "circuit_breaker.state": self._breaker.state.value,
            }) as span:
                return await self._send(span, method, url, **kwargs)

        return await self._breaker.call(send)

    async def _send(self, span: Span, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
            span.set_attribute("http.status_code", response.status_code)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code} for {url}: {e}")
            raise UpstreamServiceError(SERVICE_NAME, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Network error for {url}: {e}")
            raise UpstreamServiceError(SERVICE_NAME, f"network error: {e}") from e
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise UpstreamServiceError(SERVICE_NAME, "invalid JSON body") from e
