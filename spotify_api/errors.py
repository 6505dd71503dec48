from typing import Optional


class SpotifyError(Exception):
    """Base class for Spotify integration failures."""


class ConfigError(SpotifyError):
    """Credentials are missing or unusable."""


class AuthError(SpotifyError):
    """The accounts service rejected the client-credentials exchange."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class SpotifyAPIError(SpotifyError):
    """A Web API call returned a non-success status or could not be completed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
