from enum import Enum
from typing import Any, Dict

from spotify_api.errors import AuthError, ConfigError, SpotifyAPIError


class ToolErrorKind(Enum):
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    CONFIG = "config"
    AUTH = "auth"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


class ToolError(Exception):
    """A tools/call failure. Always rendered as an isError result, never raised past the dispatcher."""

    def __init__(self, kind: ToolErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ToolError":
        if isinstance(exc, ToolError):
            return exc
        if isinstance(exc, ConfigError):
            kind = ToolErrorKind.CONFIG
        elif isinstance(exc, AuthError):
            kind = ToolErrorKind.AUTH
        elif isinstance(exc, SpotifyAPIError):
            kind = ToolErrorKind.UPSTREAM
        else:
            kind = ToolErrorKind.INTERNAL
        return cls(kind, str(exc) or exc.__class__.__name__)

    def to_result(self) -> Dict[str, Any]:
        return {
            "content": [{"type": "text", "text": f"Error: {self.message}"}],
            "isError": True,
        }


class ProtocolError(Exception):
    """A JSON-RPC level failure (unknown method, malformed envelope or params)."""
