"""Line-delimited JSON-RPC 2.0 over a byte input stream and a text output stream.

One request per input line, one response per output line. Requests are
handled strictly one after another: the next line is read only after the
previous response has been written.
"""

import asyncio
import json
import sys
from typing import IO, Any, Dict, Optional, TextIO

from utils.logger import log_debug, log_error, log_info

from .dispatcher import RequestDispatcher
from .errors import ProtocolError

JSONRPC_VERSION = "2.0"
JSONRPC_INTERNAL_ERROR = -32603


def _jsonrpc_response(result: Any, req_id: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "result": result}


def _jsonrpc_error(message: str, req_id: Any = None, code: int = JSONRPC_INTERNAL_ERROR) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": req_id, "error": {"code": code, "message": message}}


def _is_notification(request: Dict[str, Any]) -> bool:
    method = request.get("method")
    return "id" not in request and isinstance(method, str) and method.startswith("notifications/")


async def handle_line(dispatcher: RequestDispatcher, line: str) -> Optional[Dict[str, Any]]:
    """Handle one input line; return the response envelope, or None for notifications."""

    # ValueError also covers integer literals past the int digit limit.
    try:
        request = json.loads(line)
    except (ValueError, RecursionError) as e:
        return _jsonrpc_error(f"Parse error: {e}")

    if not isinstance(request, dict):
        return _jsonrpc_error("Invalid request: expected a JSON object")

    req_id = request.get("id")

    if _is_notification(request):
        log_debug(f"Notification: {request['method']}")
        return None

    method = request.get("method")
    try:
        if not isinstance(method, str) or not method:
            raise ProtocolError("Invalid request: missing method")
        result = await dispatcher.handle(method, request.get("params"))
    except ProtocolError as e:
        return _jsonrpc_error(str(e), req_id)
    except Exception as e:
        log_error(f"Unhandled error in {method}: {e}", exc_info=True)
        return _jsonrpc_error(str(e) or e.__class__.__name__, req_id)

    return _jsonrpc_response(result, req_id)


async def serve(dispatcher: RequestDispatcher, stdin: IO = None, stdout: TextIO = None) -> int:
    """Serve requests until stdin is closed. Returns the number of lines handled.

    stdin is read as bytes (sys.stdin.buffer by default) and each line is
    decoded leniently, so invalid UTF-8 ends up as a parse error envelope.
    """

    stdin = stdin or sys.stdin.buffer
    stdout = stdout or sys.stdout
    handled = 0

    while True:
        line = await asyncio.to_thread(stdin.readline)
        if not line:
            break
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        line = line.strip()
        if not line:
            continue

        response = await handle_line(dispatcher, line)
        handled += 1
        if response is None:
            continue

        stdout.write(json.dumps(response) + "\n")
        stdout.flush()

    log_info(f"Input closed after {handled} request(s)")
    return handled
