import json
import logging
import urllib.parse
from typing import Any, Dict, Optional

import httpx

from .auth import ClientCredentialsAuth
from .errors import SpotifyAPIError

logger = logging.getLogger(__name__)

SPOTIFY_API_BASE_URL = "https://api.spotify.com/v1"


def _segment(value: str) -> str:
    return urllib.parse.quote(str(value), safe="")


class SpotifyClient:
    """Thin async Spotify Web API client for catalog lookups.

    Every request asks the auth provider for a token first, so an expired
    token is refreshed transparently. Non-success statuses raise
    SpotifyAPIError; nothing is retried.
    """

    def __init__(
        self,
        auth: ClientCredentialsAuth,
        http_client: httpx.AsyncClient,
        *,
        base_url: str = SPOTIFY_API_BASE_URL,
    ):
        self.auth = auth
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")

    async def request_json(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a Web API path and return parsed JSON."""

        token = await self.auth.get_token()
        url = f"{self.base_url}{path}"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}

        logger.debug("GET %s %s", path, query)
        try:
            resp = await self.http_client.get(
                url,
                params=query or None,
                headers={
                    "Authorization": token.authorization_header(),
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise SpotifyAPIError(f"Spotify API request failed: {e}") from e

        if resp.status_code >= 400:
            raise SpotifyAPIError(
                f"Spotify API request failed: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
                reason=resp.reason_phrase,
            )

        if not resp.content:
            return {}

        try:
            payload = resp.json()
        except json.JSONDecodeError as e:
            raise SpotifyAPIError(f"Spotify API response was not JSON (status {resp.status_code})") from e

        if not isinstance(payload, dict):
            raise SpotifyAPIError(f"Spotify API response was not an object (status {resp.status_code})")
        return payload

    # -----------------
    # Catalog endpoints
    # -----------------

    async def search_tracks(self, query: str, *, limit: int = 10) -> Dict[str, Any]:
        return await self.request_json("/search", params={"q": query, "type": "track", "limit": limit})

    async def artist(self, artist_id: str) -> Dict[str, Any]:
        return await self.request_json(f"/artists/{_segment(artist_id)}")

    async def artist_top_tracks(self, artist_id: str, *, market: str = "US") -> Dict[str, Any]:
        return await self.request_json(f"/artists/{_segment(artist_id)}/top-tracks", params={"market": market})

    async def audio_features(self, track_id: str) -> Dict[str, Any]:
        return await self.request_json(f"/audio-features/{_segment(track_id)}")
