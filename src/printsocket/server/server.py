"""
Print Server
============

WebSocket accept loop for print clients.

This module provides the PrintServer class which:
    - Listens on a single host/port (no path routing, no auth)
    - Runs one PrintSession task per accepted connection
    - Optionally caps concurrent sessions
    - Shuts down all sessions from one root stop event

Design Rules:
    - Sessions share only the dispatcher (and its serialized printer)
    - A failing session never takes the server down
    - websockets rejects oversized frames and messages with 1009 before
      buffering them; the session's accumulator checks the same limit
"""

import asyncio
import logging
from typing import Optional

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.frames import CloseCode

from printsocket.protocol.dispatcher import PrintDispatcher
from printsocket.server.session import PrintSession


logger = logging.getLogger(__name__)


class ServerMetrics:
    """Metrics for PrintServer observability."""

    __slots__ = (
        "sessions_served",
        "active_sessions",
        "sessions_rejected",
    )

    def __init__(self) -> None:
        self.sessions_served: int = 0
        self.active_sessions: int = 0
        self.sessions_rejected: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "sessions_served": self.sessions_served,
            "active_sessions": self.active_sessions,
            "sessions_rejected": self.sessions_rejected,
        }


class PrintServer:
    """
    WebSocket server that feeds print requests to a PrintDispatcher.

    Attributes:
        host: Bind host
        port: Bind port (0 picks a free port; see bound_port)
        dispatcher: Shared print dispatcher
        metrics: Operational metrics

    Example:
        server = PrintServer(dispatcher, host="localhost", port=8080)

        # Serve until stopped
        task = asyncio.create_task(server.run())

        # Later, stop gracefully
        await server.stop()
        await task
    """

    def __init__(
        self,
        dispatcher: PrintDispatcher,
        host: str = "localhost",
        port: int = 8080,
        max_sessions: int = 0,
        max_message_bytes: int = 16 * 1024 * 1024,
        receive_timeout: float = 0.0,
        ping_interval: Optional[float] = 20.0,
        ping_timeout: Optional[float] = 10.0,
        close_timeout: float = 5.0,
    ) -> None:
        """
        Initialize print server.

        Args:
            dispatcher: Dispatcher shared by all sessions
            host: Bind host
            port: Bind port
            max_sessions: Concurrent session cap (0 = unlimited)
            max_message_bytes: Per-message size limit
            receive_timeout: Idle seconds before a session is closed (0 = no limit)
            ping_interval: Keepalive ping interval (None disables keepalive)
            ping_timeout: Seconds to wait for a pong
            close_timeout: Seconds to wait for the close handshake
        """
        self.dispatcher = dispatcher
        self.host = host
        self.port = port
        self.max_sessions = max_sessions
        self.max_message_bytes = max_message_bytes
        self.receive_timeout = receive_timeout
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.close_timeout = close_timeout

        self.metrics = ServerMetrics()

        self._server: Optional[Server] = None
        self._stop_event: asyncio.Event = asyncio.Event()
        self._next_session_id: int = 1

    @property
    def bound_port(self) -> Optional[int]:
        """Port the listener is bound to, once started."""
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    async def start(self) -> None:
        """
        Bind the listener and start accepting connections.

        Raises:
            OSError: If the address cannot be bound
        """
        self._stop_event.clear()
        self._server = await serve(
            self._handle_connection,
            self.host,
            self.port,
            max_size=self.max_message_bytes,
            ping_interval=self.ping_interval,
            ping_timeout=self.ping_timeout,
            close_timeout=self.close_timeout,
        )
        logger.info(f"WebSocket server listening on ws://{self.host}:{self.bound_port}/")

    async def run(self) -> None:
        """
        Serve until stop() is called.

        Starts the listener first if start() has not been called.
        """
        if self._server is None:
            await self.start()

        await self._stop_event.wait()
        await self._shutdown()

    async def stop(self) -> None:
        """
        Stop serving gracefully.

        Signals every session to close and shuts the listener.
        """
        logger.info("PrintServer stopping...")
        self._stop_event.set()

    async def _shutdown(self) -> None:
        if self._server is None:
            return

        # Sessions see the stop event and close with 1001 themselves.
        self._server.close(close_connections=False)
        try:
            await asyncio.wait_for(
                self._server.wait_closed(),
                timeout=self.close_timeout * 2,
            )
        except asyncio.TimeoutError:
            logger.warning("Sessions did not close in time, forcing close")
            self._server.close(close_connections=True)
            await self._server.wait_closed()

        self._server = None
        logger.info(f"PrintServer stopped: {self.metrics.to_dict()}")

    async def _handle_connection(self, connection: ServerConnection) -> None:
        if self.max_sessions > 0 and self.metrics.active_sessions >= self.max_sessions:
            self.metrics.sessions_rejected += 1
            logger.warning(
                f"Rejecting connection from {connection.remote_address}: "
                f"{self.metrics.active_sessions} sessions active"
            )
            await connection.close(CloseCode.TRY_AGAIN_LATER, "server busy")
            return

        session_id = self._next_session_id
        self._next_session_id += 1
        self.metrics.sessions_served += 1
        self.metrics.active_sessions += 1

        session = PrintSession(
            connection=connection,
            dispatcher=self.dispatcher,
            stop_event=self._stop_event,
            max_message_bytes=self.max_message_bytes,
            receive_timeout=self.receive_timeout,
            session_id=session_id,
        )
        try:
            await session.run()
        except Exception as e:
            logger.exception(f"Session {session_id} crashed: {e}")
        finally:
            self.metrics.active_sessions -= 1
