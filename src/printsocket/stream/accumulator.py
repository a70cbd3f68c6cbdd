"""
Frame Accumulator
=================

Reassembles WebSocket frames into complete text messages.

This module provides the FrameAccumulator class, which sits between the
transport adapter and the message decoder.

Design Rules:
    - Fixed maximum message size (fails the session on overflow)
    - Text is decoded incrementally, so code points may straddle frames
    - Binary frames never mix into the text buffer
    - A close frame requests shutdown regardless of buffer state
    - Does NOT parse or interpret messages
"""

import codecs
import logging
from typing import Optional

from printsocket.stream.frame import FrameType, WireFrame


logger = logging.getLogger(__name__)


class FrameTooLarge(Exception):
    """Raised when a message grows beyond the configured maximum size."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"Message of at least {size} bytes exceeds limit of {limit} bytes"
        )
        self.size = size
        self.limit = limit


class InvalidFramePayload(Exception):
    """Raised when a text message is not valid UTF-8."""


class FrameAccumulator:
    """
    Buffers text frames until the end of a logical message.

    Splitting a message at arbitrary frame boundaries produces the same
    output as sending it in a single frame.

    Attributes:
        max_message_bytes: Upper bound on a single message's payload
        close_requested: Whether a close frame has been seen
        messages_completed: Number of complete messages produced

    Example:
        accumulator = FrameAccumulator(max_message_bytes=1 << 20)

        for frame in frames:
            message = accumulator.feed(frame)
            if accumulator.close_requested:
                break
            if message is not None:
                handle(message)
    """

    def __init__(self, max_message_bytes: int = 16 * 1024 * 1024) -> None:
        """
        Initialize frame accumulator.

        Args:
            max_message_bytes: Maximum payload bytes per message. Must be >= 1.
        """
        if max_message_bytes < 1:
            raise ValueError("max_message_bytes must be >= 1")

        self.max_message_bytes = max_message_bytes
        self.close_requested: bool = False
        self.messages_completed: int = 0

        self._parts: list[str] = []
        self._buffered_bytes: int = 0
        self._decoder = codecs.getincrementaldecoder("utf-8")()

    @property
    def buffered_bytes(self) -> int:
        """Payload bytes of the message currently being assembled."""
        return self._buffered_bytes

    def feed(self, frame: WireFrame) -> Optional[str]:
        """
        Consume one frame.

        Args:
            frame: Next frame from the transport

        Returns:
            The complete message when frame ends a text message,
            None otherwise.

        Raises:
            FrameTooLarge: If the message exceeds max_message_bytes
            InvalidFramePayload: If the text is not valid UTF-8
        """
        if frame.opcode is FrameType.CLOSE:
            self.close_requested = True
            return None

        if frame.opcode is FrameType.BINARY:
            logger.debug(f"Ignoring binary frame ({len(frame.data)} bytes)")
            return None

        self._buffered_bytes += len(frame.data)
        if self._buffered_bytes > self.max_message_bytes:
            size = self._buffered_bytes
            self.reset()
            raise FrameTooLarge(size, self.max_message_bytes)

        try:
            self._parts.append(self._decoder.decode(frame.data, final=frame.fin))
        except UnicodeDecodeError as e:
            self.reset()
            raise InvalidFramePayload(f"Text message is not valid UTF-8: {e}") from e

        if not frame.fin:
            return None

        message = "".join(self._parts)
        self.reset()
        self.messages_completed += 1
        return message

    def reset(self) -> None:
        """Discard any partially assembled message."""
        self._parts.clear()
        self._buffered_bytes = 0
        self._decoder.reset()
