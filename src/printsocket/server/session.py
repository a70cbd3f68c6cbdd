"""
Print Session
=============

One accepted WebSocket connection and its read/process/respond cycle.

State machine:
    AWAITING_HANDSHAKE -> OPEN -> CLOSING -> CLOSED

Design Rules:
    - Messages are handled strictly in receipt order, one at a time
    - Malformed and rejected messages never end the session
    - Oversized or invalid UTF-8 messages fail the session with a close code
    - Transport faults end the session but never escape it
    - The session stops when the server's stop event is set
"""

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, Optional

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.frames import CloseCode

from printsocket.protocol.decoder import MalformedSyntax, decode_message
from printsocket.protocol.dispatcher import PrintDispatcher
from printsocket.stream.accumulator import FrameAccumulator, FrameTooLarge, InvalidFramePayload
from printsocket.stream.frame import WireFrame
from printsocket.stream.transport import read_frames


logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle states of a print session."""

    AWAITING_HANDSHAKE = "AWAITING_HANDSHAKE"
    OPEN = "OPEN"
    CLOSING = "CLOSING"
    CLOSED = "CLOSED"


class SessionMetrics:
    """Metrics for PrintSession observability."""

    __slots__ = (
        "frames_received",
        "messages_received",
        "malformed_messages",
        "responses_sent",
    )

    def __init__(self) -> None:
        self.frames_received: int = 0
        self.messages_received: int = 0
        self.malformed_messages: int = 0
        self.responses_sent: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_received": self.frames_received,
            "messages_received": self.messages_received,
            "malformed_messages": self.malformed_messages,
            "responses_sent": self.responses_sent,
        }


class PrintSession:
    """
    Drives accumulate -> decode -> dispatch -> respond for one connection.

    Attributes:
        session_id: Identifier used in logs
        state: Current lifecycle state
        close_code: Close code the server sent, if it initiated the close
        metrics: Operational metrics

    Example:
        session = PrintSession(connection, dispatcher, stop_event)
        await session.run()
    """

    def __init__(
        self,
        connection: ServerConnection,
        dispatcher: PrintDispatcher,
        stop_event: asyncio.Event,
        max_message_bytes: int = 16 * 1024 * 1024,
        receive_timeout: float = 0.0,
        session_id: int = 0,
    ) -> None:
        """
        Initialize print session.

        Args:
            connection: Connection whose handshake has completed
            dispatcher: Shared print dispatcher
            stop_event: Stop handle derived from the server's root event
            max_message_bytes: Accumulator size limit
            receive_timeout: Idle seconds before closing (0 = no limit)
            session_id: Identifier used in logs
        """
        self.connection = connection
        self.dispatcher = dispatcher
        self.stop_event = stop_event
        self.receive_timeout = receive_timeout
        self.session_id = session_id

        self.state = SessionState.AWAITING_HANDSHAKE
        self.close_code: Optional[int] = None
        self.metrics = SessionMetrics()

        self._accumulator = FrameAccumulator(max_message_bytes=max_message_bytes)

    async def run(self) -> None:
        """Serve the connection until it closes."""
        self.state = SessionState.OPEN
        logger.info(f"Client connected (session={self.session_id})")

        frames = read_frames(self.connection)
        try:
            await self._serve(frames)
        except FrameTooLarge as e:
            logger.warning(f"Session {self.session_id} failed: {e}")
            await self._close(CloseCode.MESSAGE_TOO_BIG, "message too big")
        except InvalidFramePayload as e:
            logger.warning(f"Session {self.session_id} failed: {e}")
            await self._close(CloseCode.INVALID_DATA, "invalid utf-8")
        except ConnectionClosedOK:
            logger.info(f"Session {self.session_id} closed while responding")
        except ConnectionClosed as e:
            logger.warning(f"Session {self.session_id} transport error: {e}")
        except OSError as e:
            logger.error(f"Session {self.session_id} socket error: {e}")
        finally:
            self.state = SessionState.CLOSED
            logger.info(
                f"Client disconnected (session={self.session_id}, "
                f"metrics={self.metrics.to_dict()})"
            )

    async def _serve(self, frames: AsyncIterator[WireFrame]) -> None:
        while self.state is SessionState.OPEN:
            frame = await self._next_frame(frames)
            if frame is None:
                break

            self.metrics.frames_received += 1
            message = self._accumulator.feed(frame)

            if self._accumulator.close_requested:
                self.state = SessionState.CLOSING
                break

            if message is not None and not await self._process(message):
                break

        if self.stop_event.is_set():
            await self._close(CloseCode.GOING_AWAY, "server shutting down")
        else:
            await self._close(CloseCode.NORMAL_CLOSURE, "")

    async def _next_frame(self, frames: AsyncIterator[WireFrame]) -> Optional[WireFrame]:
        """
        Wait for the next frame, the stop event or the receive timeout.

        Returns:
            Next frame, or None if the session should close.

        Raises:
            ConnectionClosedError: If the transport fails
        """
        if self.stop_event.is_set():
            return None

        receive = asyncio.create_task(_receive(frames))
        stop = asyncio.create_task(self.stop_event.wait())
        try:
            done, _ = await asyncio.wait(
                {receive, stop},
                timeout=self.receive_timeout if self.receive_timeout > 0 else None,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            receive.cancel()
            raise
        finally:
            stop.cancel()

        if receive in done:
            return receive.result()

        receive.cancel()
        try:
            await receive
        except (asyncio.CancelledError, ConnectionClosed):
            pass

        if stop in done:
            logger.info(f"Session {self.session_id} stopping for shutdown")
        else:
            logger.info(
                f"Session {self.session_id} idle for {self.receive_timeout}s, closing"
            )
        return None

    async def _process(self, message: str) -> bool:
        """
        Handle one message unless the stop event fires first.

        Returns:
            False if the message was abandoned for shutdown.
        """
        handler = asyncio.create_task(self._handle_message(message))
        stop = asyncio.create_task(self.stop_event.wait())
        try:
            await asyncio.wait({handler, stop}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            handler.cancel()
            raise
        finally:
            stop.cancel()

        if handler.done():
            handler.result()
            return True

        handler.cancel()
        try:
            await handler
        except asyncio.CancelledError:
            pass
        logger.info(f"Session {self.session_id} abandoning in-flight message for shutdown")
        return False

    async def _handle_message(self, message: str) -> None:
        self.metrics.messages_received += 1

        try:
            request = decode_message(message)
        except MalformedSyntax as e:
            self.metrics.malformed_messages += 1
            logger.error(
                f"JSON parse error: {e} (line {e.line}, column {e.column}); "
                f"first 100 characters: {e.prefix}"
            )
            return

        response = await self.dispatcher.dispatch(request)
        if response is not None:
            await self.connection.send(response.to_json())
            self.metrics.responses_sent += 1

    async def _close(self, code: int, reason: str) -> None:
        if self.state is SessionState.OPEN:
            self.close_code = code
        self.state = SessionState.CLOSING
        await self.connection.close(code, reason)


async def _receive(frames: AsyncIterator[WireFrame]) -> Optional[WireFrame]:
    try:
        return await anext(frames)
    except StopAsyncIteration:
        return None
