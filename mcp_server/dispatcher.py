from typing import Any, Dict, Optional

from spotify_api.data_loader import SpotifyDataLoader
from utils.logger import log_info, log_warning

from .errors import ProtocolError, ToolError
from .rate_gate import RateGate
from .tools import list_tools, text_result, validate_arguments

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "spotify-mcp-server"
SERVER_VERSION = "1.0.0"


class RequestDispatcher:
    """Routes JSON-RPC methods to handlers.

    Only tools/call touches the network. Every failure inside a tool call is
    turned into an ``isError`` result; unknown methods raise ProtocolError for
    the transport to report.
    """

    def __init__(self, loader: SpotifyDataLoader, rate_gate: RateGate):
        self.loader = loader
        self.rate_gate = rate_gate
        self._handlers = {
            "initialize": self.handle_initialize,
            "tools/list": self.handle_tools_list,
            "tools/call": self.handle_tool_call,
        }
        self._tools = {
            "search_tracks": self._search_tracks,
            "get_artist_info": self._get_artist_info,
            "get_track_features": self._get_track_features,
        }

    async def handle(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        handler = self._handlers.get(method)
        if handler is None:
            raise ProtocolError(f"Unknown method: {method}")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise ProtocolError(f"Params for {method} must be an object")
        return await handler(params)

    async def handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        client_info = params.get("clientInfo") or {}
        if client_info:
            log_info(f"Initialize from {client_info.get('name', 'unknown')} {client_info.get('version', '')}".rstrip())
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    async def handle_tools_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": list_tools()}

    async def handle_tool_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        try:
            arguments = validate_arguments(name, params.get("arguments"))
            await self.rate_gate.wait()
            return await self._tools[name](arguments)
        except Exception as e:
            error = ToolError.from_exception(e)
            log_warning(f"Tool {name} failed ({error.kind.value}): {error.message}")
            return error.to_result()

    async def _search_tracks(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        tracks = await self.loader.search_tracks(arguments["query"], limit=arguments["limit"])
        return text_result(tracks)

    async def _get_artist_info(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        return text_result(await self.loader.artist_info(arguments["artist_id"]))

    async def _get_track_features(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        return text_result(await self.loader.track_features(arguments["track_id"]))

