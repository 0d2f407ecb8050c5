"""
Unit tests for the auth service HTTP client.
"""
import json
from uuid import uuid4

import httpx
import pytest

from geofeed.clients.auth_service import AuthServiceClient
from geofeed.core.circuit_breaker import CircuitBreaker, CircuitState
from geofeed.core.exceptions import CircuitBreakerOpenError, UpstreamServiceError

BASE_URL = "http://auth.test"


def make_client(handler, circuit_breaker=None) -> AuthServiceClient:
    transport = httpx.MockTransport(handler)
    return AuthServiceClient(
        base_url=BASE_URL,
        circuit_breaker=circuit_breaker,
        client=httpx.AsyncClient(transport=transport),
    )


class TestFetchProfilesBatch:
    @pytest.mark.asyncio
    async def test_posts_distinct_ids_and_indexes_result(self):
        alice, bob = uuid4(), uuid4()
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"profiles": [
                {"userId": str(alice), "name": "Alice", "profilePicture": "a.png"},
                {"userId": str(bob), "name": "Bob", "profilePicture": None},
            ]})

        client = make_client(handler)
        profiles = await client.fetch_profiles_batch([alice, bob, alice])

        assert seen["method"] == "POST"
        assert seen["path"] == "/api/profiles/batch"
        assert seen["body"] == {"userIds": [str(alice), str(bob)]}
        assert profiles[alice].name == "Alice"
        assert profiles[alice].profile_picture == "a.png"
        assert profiles[bob].profile_picture is None

    @pytest.mark.asyncio
    async def test_empty_ids_skip_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = make_client(handler)
        assert await client.fetch_profiles_batch([]) == {}

    @pytest.mark.asyncio
    async def test_null_profiles_list(self):
        client = make_client(lambda request: httpx.Response(200, json={"profiles": None}))
        assert await client.fetch_profiles_batch([uuid4()]) == {}

    @pytest.mark.asyncio
    async def test_duplicates_keep_first_and_nulls_dropped(self):
        user_id = uuid4()
        client = make_client(lambda request: httpx.Response(200, json={"profiles": [
            None,
            {"userId": None, "name": "Nobody"},
            {"userId": str(user_id), "name": "First"},
            {"userId": str(user_id), "name": "Second"},
        ]}))

        profiles = await client.fetch_profiles_batch([user_id])

        assert list(profiles) == [user_id]
        assert profiles[user_id].name == "First"

    @pytest.mark.asyncio
    async def test_http_error_raises_upstream_error(self):
        client = make_client(lambda request: httpx.Response(500))

        with pytest.raises(UpstreamServiceError) as exc_info:
            await client.fetch_profiles_batch([uuid4()])

        assert exc_info.value.details["reason"] == "HTTP 500"

    @pytest.mark.asyncio
    async def test_network_error_raises_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(UpstreamServiceError):
            await client.fetch_profiles_batch([uuid4()])

    @pytest.mark.asyncio
    async def test_malformed_body_raises_upstream_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"profiles": "nope"}))

        with pytest.raises(UpstreamServiceError):
            await client.fetch_profiles_batch([uuid4()])


class TestFetchFollowingList:
    @pytest.mark.asyncio
    async def test_gets_following_list(self):
        user_id, followed = uuid4(), uuid4()
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            return httpx.Response(200, json=[{"userId": str(followed), "name": "Bob"}, None])

        client = make_client(handler)
        result = await client.fetch_following_list(user_id)

        assert seen["path"] == f"/api/follow/following/{user_id}"
        assert [profile.user_id for profile in result] == [followed]

    @pytest.mark.asyncio
    async def test_null_body_means_nobody(self):
        client = make_client(lambda request: httpx.Response(200, content=b"null"))
        assert await client.fetch_following_list(uuid4()) == []

    @pytest.mark.asyncio
    async def test_empty_body_raises_upstream_error(self):
        client = make_client(lambda request: httpx.Response(200, content=b""))

        with pytest.raises(UpstreamServiceError) as exc_info:
            await client.fetch_following_list(uuid4())

        assert exc_info.value.details["reason"] == "invalid JSON body"

    @pytest.mark.asyncio
    async def test_request_is_traced(self, span_exporter):
        client = make_client(lambda request: httpx.Response(200, json=[]))

        await client.fetch_following_list(uuid4())

        [span] = span_exporter.get_finished_spans()
        assert span.name == "geofeed.auth_service.request"
        assert span.attributes["http.method"] == "GET"
        assert span.attributes["http.status_code"] == 200
        assert span.attributes["circuit_breaker.state"] == "closed"


class TestCircuitBreakerIntegration:
    @pytest.mark.asyncio
    async def test_repeated_failures_open_circuit(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        breaker = CircuitBreaker("auth_service", failure_threshold=2, recovery_timeout_sec=60)
        client = make_client(handler, circuit_breaker=breaker)

        for _ in range(2):
            with pytest.raises(UpstreamServiceError):
                await client.fetch_following_list(uuid4())
        assert breaker.state == CircuitState.OPEN

        with pytest.raises(CircuitBreakerOpenError):
            await client.fetch_following_list(uuid4())
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_stop_closes_client(self):
        client = make_client(lambda request: httpx.Response(200, json=[]))

        await client.fetch_following_list(uuid4())
        await client.stop()

        assert client._client is None
