"""
Server Module
=============

WebSocket accept loop and per-connection sessions.
"""

from printsocket.server.session import PrintSession, SessionMetrics, SessionState
from printsocket.server.server import PrintServer, ServerMetrics

__all__ = [
    "PrintSession",
    "SessionMetrics",
    "SessionState",
    "PrintServer",
    "ServerMetrics",
]
