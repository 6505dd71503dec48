#!/usr/bin/env python3
"""End-to-end JSON-RPC scenarios for the Spotify MCP server.

Drives ``mcp_server.transport.serve`` with in-memory stdin/stdout and the real
auth/client/loader/dispatcher stack. Spotify itself is replaced by an
``httpx.MockTransport`` stub, so no network access is needed.

Usage:
  python3 -m unittest tests.test_protocol_scenarios
"""

from __future__ import annotations

import io
import json
import sys
import time
import unittest
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import httpx

from mcp_server import RateGate, RequestDispatcher, serve
from spotify_api import ClientCredentialsAuth, SpotifyClient, SpotifyCredentials, SpotifyDataLoader


# -------------------------
# Stub upstream
# -------------------------


def _track(idx: int) -> dict[str, Any]:
    return {
        "id": f"track{idx}",
        "name": f"Shake It Off {idx}",
        "artists": [{"name": "Taylor Swift"}],
        "album": {"name": "1989"},
        "popularity": 80,
        "preview_url": None,
        "external_urls": {"spotify": f"https://open.spotify.com/track/track{idx}"},
        "duration_ms": 219200,
    }


class StubSpotify:
    """Answers token, search, artist, top-tracks and audio-features requests."""

    def __init__(self, *, top_tracks_status: int = 200):
        self.top_tracks_status = top_tracks_status
        self.token_requests = 0
        self.api_request_times: list[float] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/token":
            self.token_requests += 1
            return httpx.Response(200, json={"access_token": "stub-token", "token_type": "Bearer", "expires_in": 3600})

        self.api_request_times.append(time.monotonic())
        if request.headers.get("Authorization") != "Bearer stub-token":
            return httpx.Response(401, json={"error": {"status": 401}})

        if path == "/v1/search":
            limit = int(request.url.params.get("limit", "10"))
            return httpx.Response(200, json={"tracks": {"items": [_track(i) for i in range(limit)]}})
        if path == "/v1/audio-features/X":
            return httpx.Response(
                200,
                json={"id": "X", "danceability": 0.8, "energy": 0.6, "valence": 0.5, "tempo": 120, "loudness": -5, "key": 5},
            )
        if path == "/v1/artists/A":
            return httpx.Response(200, json={"name": "Taylor Swift", "genres": ["pop"], "popularity": 100, "followers": {"total": 10}})
        if path == "/v1/artists/A/top-tracks":
            if self.top_tracks_status != 200:
                return httpx.Response(self.top_tracks_status, json={"error": {"status": self.top_tracks_status}})
            return httpx.Response(200, json={"tracks": [_track(0), _track(1)]})
        return httpx.Response(404, json={"error": {"status": 404}})


def _request(req_id: Any, method: str, params: dict[str, Any] | None = None) -> str:
    return json.dumps({"jsonrpc": "2.0", "id": req_id, "method": method, "params": params or {}})


class ProtocolScenarioTests(unittest.IsolatedAsyncioTestCase):
    async def run_lines(self, lines: list[str | bytes], *, stub: StubSpotify | None = None, min_interval: float = 0.0) -> list[dict]:
        self.stub = stub or StubSpotify()
        raw = [line if isinstance(line, bytes) else line.encode("utf-8") for line in lines]
        stdin = io.BytesIO(b"".join(line + b"\n" for line in raw))
        stdout = io.StringIO()

        async with httpx.AsyncClient(transport=httpx.MockTransport(self.stub)) as http:
            auth = ClientCredentialsAuth(SpotifyCredentials("id", "secret"), http)
            loader = SpotifyDataLoader(SpotifyClient(auth, http))
            dispatcher = RequestDispatcher(loader, RateGate(min_interval))
            await serve(dispatcher, stdin, stdout)

        return [json.loads(out) for out in stdout.getvalue().splitlines()]

    async def test_initialize_and_list(self):
        init, listed = await self.run_lines([_request(1, "initialize", {"protocolVersion": "2024-11-05"}), _request(2, "tools/list")])

        self.assertEqual(init["id"], 1)
        self.assertEqual(init["result"]["serverInfo"], {"name": "spotify-mcp-server", "version": "1.0.0"})
        self.assertEqual(len(listed["result"]["tools"]), 3)
        self.assertEqual(self.stub.token_requests, 0)

    async def test_search_tracks_returns_three_shaped_tracks(self):
        (response,) = await self.run_lines(
            [_request(7, "tools/call", {"name": "search_tracks", "arguments": {"query": "Shake It Off", "limit": 3}})]
        )

        self.assertEqual(response["id"], 7)
        tracks = json.loads(response["result"]["content"][0]["text"])
        self.assertEqual(len(tracks), 3)
        for track in tracks:
            self.assertEqual(set(track), {"name", "artist", "album", "popularity", "preview_url", "spotify_url"})
        self.assertEqual(tracks[0]["artist"], "Taylor Swift")

    async def test_track_features_exact_fields(self):
        (response,) = await self.run_lines([_request(3, "tools/call", {"name": "get_track_features", "arguments": {"track_id": "X"}})])

        features = json.loads(response["result"]["content"][0]["text"])
        self.assertEqual(features, {"danceability": 0.8, "energy": 0.6, "valence": 0.5, "tempo": 120, "loudness": -5})

    async def test_malformed_line_then_valid_line(self):
        responses = await self.run_lines(["{not json", _request(9, "tools/list")])

        self.assertEqual(len(responses), 2)
        self.assertIsNone(responses[0]["id"])
        self.assertEqual(responses[0]["error"]["code"], -32603)
        self.assertEqual(responses[1]["id"], 9)
        self.assertIn("tools", responses[1]["result"])

    async def test_non_object_request_is_error_with_null_id(self):
        (response,) = await self.run_lines(["[1, 2, 3]"])
        self.assertIsNone(response["id"])
        self.assertEqual(response["error"]["code"], -32603)

    async def test_deeply_nested_line_does_not_stop_serving(self):
        responses = await self.run_lines(["[" * 100000, _request(2, "tools/list")])

        self.assertEqual([r["id"] for r in responses], [None, 2])
        self.assertEqual(responses[0]["error"]["code"], -32603)
        self.assertIn("Parse error", responses[0]["error"]["message"])

    async def test_invalid_utf8_line_does_not_stop_serving(self):
        responses = await self.run_lines([b"\xff\xfe{\"id\": 1}", _request(2, "tools/list")])

        self.assertEqual([r["id"] for r in responses], [None, 2])
        self.assertEqual(responses[0]["error"]["code"], -32603)

    async def test_oversized_integer_id_does_not_stop_serving(self):
        line = '{"jsonrpc": "2.0", "id": ' + "9" * 5000 + ', "method": "tools/list"}'
        responses = await self.run_lines([line, _request(2, "tools/list")])

        self.assertEqual(len(responses), 2)
        self.assertEqual(responses[1]["id"], 2)
        if sys.version_info >= (3, 11):
            # Integer literals past the digit limit are a parse error there.
            self.assertIsNone(responses[0]["id"])
            self.assertEqual(responses[0]["error"]["code"], -32603)

    async def test_unknown_method_is_rpc_error(self):
        (response,) = await self.run_lines([_request("abc", "prompts/list")])

        self.assertEqual(response["id"], "abc")
        self.assertEqual(response["error"], {"code": -32603, "message": "Unknown method: prompts/list"})
        self.assertNotIn("result", response)

    async def test_unknown_tool_is_tool_error_result(self):
        (response,) = await self.run_lines([_request(4, "tools/call", {"name": "delete_playlist", "arguments": {}})])

        self.assertTrue(response["result"]["isError"])
        self.assertIn("Unknown tool", response["result"]["content"][0]["text"])
        self.assertEqual(self.stub.api_request_times, [])

    async def test_artist_info_all_or_nothing(self):
        (ok,) = await self.run_lines([_request(5, "tools/call", {"name": "get_artist_info", "arguments": {"artist_id": "A"}})])
        artist = json.loads(ok["result"]["content"][0]["text"])
        self.assertEqual(artist["top_tracks"], ["Shake It Off 0", "Shake It Off 1"])

        (failed,) = await self.run_lines(
            [_request(6, "tools/call", {"name": "get_artist_info", "arguments": {"artist_id": "A"}})],
            stub=StubSpotify(top_tracks_status=500),
        )
        self.assertTrue(failed["result"]["isError"])
        self.assertEqual(len(failed["result"]["content"]), 1)
        self.assertEqual(failed["result"]["content"][0]["text"], "Error: Spotify API request failed: 500 Internal Server Error")

    async def test_notifications_and_blank_lines_get_no_response(self):
        responses = await self.run_lines(
            [json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}), "", "   ", _request(1, "tools/list")]
        )
        self.assertEqual([r["id"] for r in responses], [1])

    async def test_token_is_fetched_once_across_calls(self):
        await self.run_lines(
            [
                _request(1, "tools/call", {"name": "get_track_features", "arguments": {"track_id": "X"}}),
                _request(2, "tools/call", {"name": "search_tracks", "arguments": {"query": "q", "limit": 1}}),
            ]
        )
        self.assertEqual(self.stub.token_requests, 1)

    async def test_back_to_back_calls_are_rate_gated(self):
        call = _request(1, "tools/call", {"name": "get_track_features", "arguments": {"track_id": "X"}})
        await self.run_lines([call, call, call], min_interval=0.6)

        times = self.stub.api_request_times
        self.assertEqual(len(times), 3)
        for earlier, later in zip(times, times[1:]):
            self.assertGreaterEqual(later - earlier, 0.55)


if __name__ == "__main__":
    unittest.main(verbosity=2)
