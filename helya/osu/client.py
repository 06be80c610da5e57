"""
osu! API v2 client.

Authenticates with the OAuth2 client-credentials grant (public scope) and
exposes the handful of read-only endpoints the bot's commands need.

The access token is cached and refreshed a minute before it expires. If the
API still answers 401 (token revoked early), the token is dropped and the
request is retried once.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Literal

import httpx
from pydantic import TypeAdapter

from helya.config.logging import get_logger
from helya.osu.errors import OsuAPIError, OsuNotFoundError
from helya.osu.models import GameMode, OsuScore, OsuToken, OsuUser

logger = get_logger(__name__)

API_BASE_URL = "https://osu.ppy.sh/api/v2/"
TOKEN_URL = "https://osu.ppy.sh/oauth/token"

# Refresh this many seconds before the token actually expires
TOKEN_EXPIRY_MARGIN = 60.0

DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)

ScoreKind = Literal["best", "recent", "firsts"]

_scores_adapter = TypeAdapter(list[OsuScore])


class OsuClient:
    """
    Async osu! API client.

    Use as an async context manager, or call ``initialize()`` / ``close()``::

        async with OsuClient(client_id, client_secret) as osu:
            user = await osu.get_user("peppy")

    Args:
        client_id: OAuth application ID
        client_secret: OAuth application secret
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        timeout: Per-request timeout
        clock: Monotonic clock used for token expiry
    """

    def __init__(
        self,
        client_id: int,
        client_secret: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._transport = transport
        self._timeout = timeout
        self._clock = clock
        self._http: httpx.AsyncClient | None = None
        self._token: str | None = None
        self._token_expires_at = 0.0

    async def initialize(self) -> None:
        """Open the underlying HTTP connection pool."""
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            base_url=API_BASE_URL,
            transport=self._transport,
            timeout=self._timeout,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        """Close the HTTP connection pool. Safe to call more than once."""
        if self._http is None:
            return
        await self._http.aclose()
        self._http = None
        self._token = None

    async def __aenter__(self) -> OsuClient:
        await self.initialize()
        return self

    async def __aexit__(self, *_args) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @property
    def has_credentials(self) -> bool:
        return bool(self._client_id and self._client_secret)

    async def _get_token(self) -> str:
        if self._token is not None and self._clock() < self._token_expires_at:
            return self._token

        if not self.has_credentials:
            raise OsuAPIError(
                "osu! API credentials are not configured "
                "(credentials.osu.client_id / client_secret)"
            )

        logger.debug("Requesting osu! API access token")
        try:
            response = await self._http.post(
                TOKEN_URL,
                data={
                    "client_id": str(self._client_id),
                    "client_secret": self._client_secret,
                    "grant_type": "client_credentials",
                    "scope": "public",
                },
            )
        except httpx.HTTPError as e:
            raise OsuAPIError(f"Could not reach osu! OAuth endpoint: {e}") from e

        if response.status_code != 200:
            raise OsuAPIError(
                f"osu! rejected the client credentials (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        token = OsuToken.model_validate(response.json())
        self._token = token.access_token
        self._token_expires_at = self._clock() + token.expires_in - TOKEN_EXPIRY_MARGIN
        return self._token

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        if self._http is None:
            raise RuntimeError("OsuClient not initialized")

        for attempt in range(2):
            token = await self._get_token()
            try:
                response = await self._http.get(
                    path,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
            except httpx.HTTPError as e:
                raise OsuAPIError(f"osu! API request failed: {e}") from e

            if response.status_code == 401 and attempt == 0:
                logger.info("osu! API token was rejected, requesting a new one")
                self._token = None
                continue
            break

        if response.status_code == 404:
            raise OsuNotFoundError(f"Not found: {path}", status_code=404)
        if response.status_code >= 400:
            raise OsuAPIError(
                f"osu! API returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
            )
        return response.json()

    async def get_user(self, user: str | int, mode: GameMode | None = None) -> OsuUser:
        """
        Look up a user by username or numeric ID.

        Args:
            user: Username, or an int user ID
            mode: Ruleset for the statistics block (default: the user's own)

        Raises:
            OsuNotFoundError: If no such user exists
        """
        identifier = str(user) if isinstance(user, int) else f"@{user.strip()}"
        path = f"users/{identifier}"
        if mode is not None:
            path = f"{path}/{GameMode(mode).value}"
        data = await self._get(path)
        return OsuUser.model_validate(data)

    async def get_user_scores(
        self,
        user_id: int,
        kind: ScoreKind = "best",
        mode: GameMode | None = None,
        limit: int = 5,
    ) -> list[OsuScore]:
        """
        Fetch a user's best, recent, or first-place scores.

        Recent scores include failed plays.
        """
        params: dict[str, Any] = {"limit": limit}
        if mode is not None:
            params["mode"] = GameMode(mode).value
        if kind == "recent":
            params["include_fails"] = 1
        data = await self._get(f"users/{user_id}/scores/{kind}", params=params)
        return _scores_adapter.validate_python(data)
