import json
from typing import Any, Dict, List

from .errors import ToolError, ToolErrorKind

SEARCH_LIMIT_DEFAULT = 10
SEARCH_LIMIT_MIN = 1
SEARCH_LIMIT_MAX = 50

TOOLS = {
    "search_tracks": {
        "name": "search_tracks",
        "description": "Search Spotify's catalog for tracks",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search term (song name, artist, album)",
                },
                "limit": {
                    "type": "integer",
                    "description": "Number of results (default: 10, max: 50)",
                    "default": SEARCH_LIMIT_DEFAULT,
                    "minimum": SEARCH_LIMIT_MIN,
                    "maximum": SEARCH_LIMIT_MAX,
                },
            },
            "required": ["query"],
        },
    },
    "get_artist_info": {
        "name": "get_artist_info",
        "description": "Get detailed artist information and top tracks",
        "inputSchema": {
            "type": "object",
            "properties": {
                "artist_id": {"type": "string", "description": "Spotify artist ID"},
            },
            "required": ["artist_id"],
        },
    },
    "get_track_features": {
        "name": "get_track_features",
        "description": "Get audio analysis features for a track",
        "inputSchema": {
            "type": "object",
            "properties": {
                "track_id": {"type": "string", "description": "Spotify track ID"},
            },
            "required": ["track_id"],
        },
    },
}


def list_tools() -> List[Dict[str, Any]]:
    return [dict(tool) for tool in TOOLS.values()]


def _invalid(message: str) -> ToolError:
    return ToolError(ToolErrorKind.INVALID_ARGUMENTS, message)


def validate_arguments(name: str, arguments: Any) -> Dict[str, Any]:
    """Check tool arguments against the tool's input schema.

    Returns a cleaned copy: required strings stripped, search limit defaulted
    and clamped to [SEARCH_LIMIT_MIN, SEARCH_LIMIT_MAX].
    """
    if not isinstance(name, str) or name not in TOOLS:
        raise ToolError(ToolErrorKind.UNKNOWN_TOOL, f"Unknown tool: {name}")

    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise _invalid(f"Arguments for {name} must be an object")

    schema = TOOLS[name]["inputSchema"]
    cleaned: Dict[str, Any] = {}

    for field in schema["required"]:
        value = arguments.get(field)
        if not isinstance(value, str) or not value.strip():
            raise _invalid(f"Missing required argument: {field}")
        cleaned[field] = value.strip()

    if name == "search_tracks":
        limit = arguments.get("limit", SEARCH_LIMIT_DEFAULT)
        if limit is None:
            limit = SEARCH_LIMIT_DEFAULT
        if isinstance(limit, float) and limit.is_integer():
            limit = int(limit)
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise _invalid(f"Argument 'limit' must be an integer, got {limit!r}")
        cleaned["limit"] = min(SEARCH_LIMIT_MAX, max(SEARCH_LIMIT_MIN, limit))

    return cleaned


def text_result(value: Any) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(value, indent=2)}]}
