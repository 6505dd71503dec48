from .dispatcher import RequestDispatcher
from .errors import ProtocolError, ToolError, ToolErrorKind
from .rate_gate import RateGate
from .transport import handle_line, serve

__all__ = [
    "ProtocolError",
    "RateGate",
    "RequestDispatcher",
    "ToolError",
    "ToolErrorKind",
    "handle_line",
    "serve",
]
