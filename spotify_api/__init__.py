"""Spotify Web API integration (OAuth Client Credentials, catalog reads only).

No user authorization is involved: the process exchanges its own client
id/secret for an app token and reads public catalog data with it.
"""

from .auth import ClientCredentialsAuth, SpotifyCredentials, check_spotify_credentials
from .client import SpotifyClient
from .data_loader import SpotifyDataLoader
from .errors import AuthError, ConfigError, SpotifyAPIError, SpotifyError
from .token_manager import TokenInfo, TokenManager

__all__ = [
    "AuthError",
    "ClientCredentialsAuth",
    "ConfigError",
    "SpotifyAPIError",
    "SpotifyClient",
    "SpotifyCredentials",
    "SpotifyDataLoader",
    "SpotifyError",
    "TokenInfo",
    "TokenManager",
    "check_spotify_credentials",
]
