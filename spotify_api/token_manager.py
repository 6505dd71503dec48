import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


DEFAULT_REFRESH_MARGIN_SECONDS = 60.0


@dataclass(frozen=True)
class TokenInfo:
    """Canonical token payload held by TokenManager.

    expires_at already has the refresh margin subtracted, so a token is usable
    exactly while ``now < expires_at``.
    """

    access_token: str
    token_type: str
    expires_at: float

    @staticmethod
    def from_spotify_token_response(
        payload: Dict[str, Any],
        *,
        now: Optional[float] = None,
        refresh_margin: float = DEFAULT_REFRESH_MARGIN_SECONDS,
    ) -> "TokenInfo":
        """Convert Spotify token response JSON into TokenInfo.

        Spotify returns (client-credentials grant):
        - access_token
        - token_type
        - expires_in (seconds)
        """

        now_ts = float(time.time() if now is None else now)
        expires_in = float(payload.get("expires_in", 0))

        return TokenInfo(
            access_token=str(payload.get("access_token", "")),
            token_type=str(payload.get("token_type") or "Bearer"),
            expires_at=now_ts + expires_in - float(refresh_margin),
        )

    def authorization_header(self) -> str:
        # Spotify answers token_type "bearer"; the API expects "Bearer".
        token_type = self.token_type if self.token_type.lower() != "bearer" else "Bearer"
        return f"{token_type} {self.access_token}"


class TokenManager:
    """Holds the single live token for this process (memory only)."""

    def __init__(self, *, clock=time.time):
        self.clock = clock
        self._token: Optional[TokenInfo] = None

    @property
    def token(self) -> Optional[TokenInfo]:
        return self._token

    def load(self) -> Optional[TokenInfo]:
        """Return the cached token if it is still valid, else None."""
        token = self._token
        if token is None or self.is_expired(token, now=self.clock()):
            return None
        return token

    def save(self, token: TokenInfo) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None

    @staticmethod
    def is_expired(token: TokenInfo, *, now: Optional[float] = None) -> bool:
        now_ts = time.time() if now is None else now
        return now_ts >= float(token.expires_at)
