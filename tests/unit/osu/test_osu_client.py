"""
Tests for OsuClient.

Every request goes through httpx.MockTransport; a small fake osu! server
records what it receives so tests can assert on token handling and paths.
"""

from __future__ import annotations

import httpx
import pytest

from helya.osu.client import TOKEN_EXPIRY_MARGIN, OsuClient
from helya.osu.errors import OsuAPIError, OsuNotFoundError
from helya.osu.models import GameMode

USER_PAYLOAD = {
    "id": 2,
    "username": "peppy",
    "country_code": "AU",
    "avatar_url": "https://a.ppy.sh/2",
    "playmode": "osu",
    "statistics": {
        "pp": 1234.5,
        "global_rank": 100,
        "country_rank": 5,
        "hit_accuracy": 98.76,
        "play_count": 4321,
        "ranked_score": 1,
        "level": {"current": 100, "progress": 42},
    },
    "unknown_field": {"ignored": True},
}

SCORE_PAYLOAD = {
    "id": 1,
    "score": 1000000,
    "accuracy": 0.9876,
    "max_combo": 727,
    "mods": ["HD", "DT"],
    "rank": "S",
    "pp": 727.27,
    "created_at": "2024-01-01T00:00:00+00:00",
    "beatmap": {"id": 3, "version": "Insane", "difficulty_rating": 5.5, "url": "https://osu.ppy.sh/b/3"},
    "beatmapset": {"id": 4, "title": "Blue Zenith", "artist": "xi", "creator": "Asphyxia"},
}


class FakeOsuServer:
    """Routes token and API requests, counting how often each is hit."""

    def __init__(self) -> None:
        self.token_requests = 0
        self.api_requests: list[httpx.Request] = []
        self.unauthorized_remaining = 0
        self.api_status = 200
        self.api_payload: object = USER_PAYLOAD
        self.token_status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/oauth/token":
            self.token_requests += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_client"})
            return httpx.Response(
                200,
                json={
                    "access_token": f"token-{self.token_requests}",
                    "expires_in": 86400,
                    "token_type": "Bearer",
                },
            )

        self.api_requests.append(request)
        if self.unauthorized_remaining:
            self.unauthorized_remaining -= 1
            return httpx.Response(401, json={"authentication": "basic"})
        return httpx.Response(self.api_status, json=self.api_payload)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def server() -> FakeOsuServer:
    return FakeOsuServer()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def _client(server: FakeOsuServer, clock: FakeClock, client_id: int = 1, secret: str = "secret") -> OsuClient:
    return OsuClient(client_id, secret, transport=httpx.MockTransport(server.handler), clock=clock)


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_token_is_cached(self, server, clock):
        async with _client(server, clock) as osu:
            await osu.get_user("peppy")
            await osu.get_user("peppy")

        assert server.token_requests == 1
        assert all(r.headers["Authorization"] == "Bearer token-1" for r in server.api_requests)

    @pytest.mark.asyncio
    async def test_token_refreshed_before_expiry(self, server, clock):
        async with _client(server, clock) as osu:
            await osu.get_user("peppy")
            clock.now += 86400 - TOKEN_EXPIRY_MARGIN
            await osu.get_user("peppy")

        assert server.token_requests == 2
        assert server.api_requests[-1].headers["Authorization"] == "Bearer token-2"

    @pytest.mark.asyncio
    async def test_401_triggers_one_refresh_and_retry(self, server, clock):
        server.unauthorized_remaining = 1
        async with _client(server, clock) as osu:
            user = await osu.get_user("peppy")

        assert user.username == "peppy"
        assert server.token_requests == 2
        assert len(server.api_requests) == 2

    @pytest.mark.asyncio
    async def test_repeated_401_raises(self, server, clock):
        server.unauthorized_remaining = 2
        async with _client(server, clock) as osu:
            with pytest.raises(OsuAPIError) as exc_info:
                await osu.get_user("peppy")
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_token_request_form(self, clock):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/oauth/token":
                seen["body"] = request.content.decode()
                return httpx.Response(200, json={"access_token": "t", "expires_in": 3600})
            return httpx.Response(200, json=USER_PAYLOAD)

        osu = OsuClient(42, "shh", transport=httpx.MockTransport(handler), clock=clock)
        async with osu:
            await osu.get_user(2)

        assert "grant_type=client_credentials" in seen["body"]
        assert "scope=public" in seen["body"]
        assert "client_id=42" in seen["body"]

    @pytest.mark.asyncio
    async def test_rejected_credentials_raise(self, server, clock):
        server.token_status = 401
        async with _client(server, clock) as osu:
            with pytest.raises(OsuAPIError, match="rejected the client credentials"):
                await osu.get_user("peppy")
        assert server.api_requests == []

    @pytest.mark.asyncio
    async def test_missing_credentials_raise_without_network(self, server, clock):
        async with _client(server, clock, client_id=0, secret="") as osu:
            assert osu.has_credentials is False
            with pytest.raises(OsuAPIError, match="not configured"):
                await osu.get_user("peppy")
        assert server.token_requests == 0


class TestGetUser:
    @pytest.mark.asyncio
    async def test_username_lookup_path(self, server, clock):
        async with _client(server, clock) as osu:
            user = await osu.get_user("peppy")

        assert server.api_requests[0].url.path == "/api/v2/users/@peppy"
        assert user.id == 2
        assert user.statistics.global_rank == 100
        assert user.statistics.level.progress == 42
        assert user.profile_url == "https://osu.ppy.sh/users/2"

    @pytest.mark.asyncio
    async def test_id_lookup_with_mode(self, server, clock):
        async with _client(server, clock) as osu:
            await osu.get_user(2, GameMode.MANIA)

        assert server.api_requests[0].url.path == "/api/v2/users/2/mania"

    @pytest.mark.asyncio
    async def test_not_found(self, server, clock):
        server.api_status = 404
        server.api_payload = {"error": None}
        async with _client(server, clock) as osu:
            with pytest.raises(OsuNotFoundError):
                await osu.get_user("nobody")

    @pytest.mark.asyncio
    async def test_server_error(self, server, clock):
        server.api_status = 503
        server.api_payload = {}
        async with _client(server, clock) as osu:
            with pytest.raises(OsuAPIError) as exc_info:
                await osu.get_user("peppy")
        assert exc_info.value.status_code == 503
        assert not isinstance(exc_info.value, OsuNotFoundError)

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self, clock):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("osu! is down", request=request)

        osu = OsuClient(1, "secret", transport=httpx.MockTransport(handler), clock=clock)
        async with osu:
            with pytest.raises(OsuAPIError, match="Could not reach"):
                await osu.get_user("peppy")


class TestGetUserScores:
    @pytest.mark.asyncio
    async def test_best_scores(self, server, clock):
        server.api_payload = [SCORE_PAYLOAD]
        async with _client(server, clock) as osu:
            scores = await osu.get_user_scores(2, "best", GameMode.OSU, limit=10)

        request = server.api_requests[0]
        assert request.url.path == "/api/v2/users/2/scores/best"
        assert request.url.params["limit"] == "10"
        assert request.url.params["mode"] == "osu"
        assert "include_fails" not in request.url.params

        assert len(scores) == 1
        assert scores[0].mods_text == "+HDDT"
        assert scores[0].title == "xi - Blue Zenith [Insane]"

    @pytest.mark.asyncio
    async def test_recent_includes_fails(self, server, clock):
        server.api_payload = []
        async with _client(server, clock) as osu:
            scores = await osu.get_user_scores(2, "recent")

        assert scores == []
        assert server.api_requests[0].url.params["include_fails"] == "1"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_request_before_initialize_raises(self, server, clock):
        osu = _client(server, clock)
        with pytest.raises(RuntimeError, match="not initialized"):
            await osu.get_user("peppy")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, server, clock):
        osu = _client(server, clock)
        await osu.initialize()
        await osu.close()
        await osu.close()
