"""
Wire Frame Model
=================

Internal representation of a single WebSocket frame as seen by the
message-framing pipeline.

This module defines the typed WireFrame class that is used as the interface
between the transport adapter and the FrameAccumulator.

Design Rules:
    - This is the ONLY frame format passed to the accumulator
    - Payload is kept as raw bytes (text frames are decoded downstream)
    - A logical message may span several frames; only the last has fin=True
"""

from dataclasses import dataclass
from enum import Enum


class FrameType(str, Enum):
    """
    Frame opcodes relevant to the print pipeline.

    Continuation frames are reported with the opcode of the message
    they belong to, so the accumulator never sees CONTINUATION.
    """

    TEXT = "text"
    BINARY = "binary"
    CLOSE = "close"


@dataclass(frozen=True, slots=True)
class WireFrame:
    """
    One frame received from a WebSocket peer.

    Attributes:
        data: Raw frame payload
        fin: True when this frame ends the logical message
        opcode: Frame type (text, binary, close)
    """

    data: bytes
    fin: bool
    opcode: FrameType

    @classmethod
    def text(cls, data: bytes, fin: bool = True) -> "WireFrame":
        """Build a text frame."""
        return cls(data=data, fin=fin, opcode=FrameType.TEXT)

    @classmethod
    def close(cls) -> "WireFrame":
        """Build a close frame."""
        return cls(data=b"", fin=True, opcode=FrameType.CLOSE)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full payload."""
        return (
            f"WireFrame(opcode={self.opcode.value}, "
            f"fin={self.fin}, "
            f"size={len(self.data)})"
        )
