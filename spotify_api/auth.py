import asyncio
import base64
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx

from .errors import AuthError, ConfigError
from .token_manager import DEFAULT_REFRESH_MARGIN_SECONDS, TokenInfo, TokenManager

logger = logging.getLogger(__name__)

SPOTIFY_ACCOUNTS_BASE_URL = "https://accounts.spotify.com"

CLIENT_ID_ENV = "SPOTIFY_CLIENT_ID"
CLIENT_SECRET_ENV = "SPOTIFY_CLIENT_SECRET"


@dataclass(frozen=True)
class SpotifyCredentials:
    client_id: str
    client_secret: str

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "SpotifyCredentials":
        env = os.environ if environ is None else environ
        return SpotifyCredentials(
            client_id=str(env.get(CLIENT_ID_ENV, "") or "").strip(),
            client_secret=str(env.get(CLIENT_SECRET_ENV, "") or "").strip(),
        )

    @property
    def complete(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def basic_authorization(self) -> str:
        raw = f"{self.client_id}:{self.client_secret}".encode("utf-8")
        return f"Basic {base64.b64encode(raw).decode('ascii')}"


def check_spotify_credentials(credentials: SpotifyCredentials) -> Dict[str, Any]:
    """Validate Spotify client credentials and return a structured status dict."""

    missing = []
    if not credentials.client_id:
        missing.append(CLIENT_ID_ENV)
    if not credentials.client_secret:
        missing.append(CLIENT_SECRET_ENV)

    if missing:
        return {
            "ok": False,
            "client_id": credentials.client_id,
            "missing": missing,
            "message": (
                f"Missing {' and '.join(missing)}.\n"
                "Create an app at https://developer.spotify.com/dashboard and export its\n"
                "Client ID and Client Secret (or put them in a .env file).\n"
                "Tool calls will fail until both are set."
            ),
        }

    return {
        "ok": True,
        "client_id": credentials.client_id,
        "missing": [],
        "message": "Spotify credentials look OK.",
    }


class ClientCredentialsAuth:
    """Spotify OAuth (Client Credentials) token provider.

    Keeps one bearer token in a TokenManager and exchanges the client id/secret
    for a new one whenever the cached token is missing or stale. Failures are
    raised to the caller as-is; the next get_token() starts from scratch.
    """

    def __init__(
        self,
        credentials: SpotifyCredentials,
        http_client: httpx.AsyncClient,
        *,
        token_manager: Optional[TokenManager] = None,
        accounts_base_url: str = SPOTIFY_ACCOUNTS_BASE_URL,
        refresh_margin: float = DEFAULT_REFRESH_MARGIN_SECONDS,
        clock=time.time,
    ):
        self.credentials = credentials
        self.http_client = http_client
        self.clock = clock
        self.token_manager = token_manager or TokenManager(clock=clock)
        self.token_url = f"{accounts_base_url.rstrip('/')}/api/token"
        self.refresh_margin = float(refresh_margin)
        self._lock = asyncio.Lock()

    async def get_token(self) -> TokenInfo:
        cached = self.token_manager.load()
        if cached is not None:
            return cached

        async with self._lock:
            # Another caller may have refreshed while we waited.
            cached = self.token_manager.load()
            if cached is not None:
                return cached

            token = await self._request_token()
            self.token_manager.save(token)
            return token

    def invalidate(self) -> None:
        self.token_manager.clear()

    async def _request_token(self) -> TokenInfo:
        if not self.credentials.complete:
            raise ConfigError(f"Missing {CLIENT_ID_ENV} or {CLIENT_SECRET_ENV}")

        logger.debug("Requesting Spotify client-credentials token")
        try:
            resp = await self.http_client.post(
                self.token_url,
                data={"grant_type": "client_credentials"},
                headers={
                    "Authorization": self.credentials.basic_authorization(),
                    "Content-Type": "application/x-www-form-urlencoded",
                },
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Failed to get Spotify access token: {e}") from e

        if resp.status_code >= 400:
            raise AuthError(
                f"Failed to get Spotify access token: Spotify auth failed: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
                reason=resp.reason_phrase,
            )

        try:
            payload = resp.json()
        except json.JSONDecodeError as e:
            raise AuthError(f"Failed to get Spotify access token: response was not JSON: {resp.text}") from e

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise AuthError("Failed to get Spotify access token: response had no access_token")

        token = TokenInfo.from_spotify_token_response(payload, now=self.clock(), refresh_margin=self.refresh_margin)
        if self.token_manager.is_expired(token, now=self.clock()):
            raise AuthError(
                f"Failed to get Spotify access token: expires_in {payload.get('expires_in')}s "
                f"is within the {self.refresh_margin:g}s refresh margin"
            )
        logger.info("Obtained Spotify access token (expires in %ss)", payload.get("expires_in"))
        return token
