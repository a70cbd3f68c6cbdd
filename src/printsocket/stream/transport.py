"""
Transport Adapter
=================

Turns a websockets server connection into a stream of WireFrames.

The websockets library completes the handshake, answers pings and
handles the close handshake. This adapter only exposes what the
accumulator needs: fragment payloads, the end-of-message flag and the
frame type.

Design Rules:
    - Text fragments are re-encoded to UTF-8 bytes (accumulator decodes)
    - A normal close from the peer becomes a single CLOSE frame
    - Abnormal closes propagate as ConnectionClosedError
"""

import dataclasses
import logging
from typing import AsyncIterator, Union

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosedOK

from printsocket.stream.frame import FrameType, WireFrame


logger = logging.getLogger(__name__)


def _to_frame(fragment: Union[str, bytes], fin: bool) -> WireFrame:
    if isinstance(fragment, str):
        return WireFrame(data=fragment.encode("utf-8"), fin=fin, opcode=FrameType.TEXT)
    return WireFrame(data=bytes(fragment), fin=fin, opcode=FrameType.BINARY)


async def read_frames(connection: ServerConnection) -> AsyncIterator[WireFrame]:
    """
    Yield frames from a connection until it closes.

    Each fragment is held back until the next one arrives (or the message
    ends), which is how the final fragment gets its fin flag.

    Args:
        connection: Open websockets server connection

    Yields:
        WireFrame objects in receipt order, ending with a CLOSE frame
        when the peer closes normally.

    Raises:
        ConnectionClosedError: If the connection drops abnormally
    """
    try:
        while True:
            pending = None
            async for fragment in connection.recv_streaming():
                if pending is not None:
                    yield pending
                pending = _to_frame(fragment, fin=False)

            if pending is not None:
                yield dataclasses.replace(pending, fin=True)
    except ConnectionClosedOK as e:
        logger.debug(f"Peer closed connection: {e}")
        yield WireFrame.close()
