"""
Stream Module
=============

WebSocket frame handling for the print pipeline.

This module provides the ingestion layer for printsocket:
    - WireFrame: Typed frame data model (internal representation)
    - FrameAccumulator: Reassembles frames into complete text messages
    - read_frames: Adapts a websockets connection into WireFrames

Example:
    from printsocket.stream import FrameAccumulator, read_frames

    accumulator = FrameAccumulator(max_message_bytes=1 << 20)
    async for frame in read_frames(connection):
        message = accumulator.feed(frame)
        if message is not None:
            handle(message)
"""

from printsocket.stream.frame import FrameType, WireFrame
from printsocket.stream.accumulator import FrameAccumulator, FrameTooLarge, InvalidFramePayload
from printsocket.stream.transport import read_frames


__all__ = [
    "FrameType",
    "WireFrame",
    "FrameAccumulator",
    "FrameTooLarge",
    "InvalidFramePayload",
    "read_frames",
]
