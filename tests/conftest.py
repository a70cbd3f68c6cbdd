"""
Test Configuration
==================

Pytest fixtures and test configuration for printsocket.
"""

import asyncio
import base64
import json
from typing import List, Optional, Sequence, Union

import cv2
import numpy as np
import pytest
from websockets.exceptions import ConnectionClosedOK
from websockets.frames import Close

from printsocket.printing.imaging import PageBounds
from printsocket.printing.sink import MockPrinterSink, SerializedPrinter
from printsocket.protocol.dispatcher import PrintDispatcher


def encode_png_b64(width: int, height: int, bgr=(0, 0, 255)) -> str:
    """Base64 PNG of a solid-colour image (default red)."""
    pixels = np.full((height, width, 3), bgr, dtype=np.uint8)
    ok, buffer = cv2.imencode(".png", pixels)
    assert ok
    return base64.b64encode(buffer.tobytes()).decode("ascii")


class FakeConnection:
    """
    Stand-in for a websockets ServerConnection.

    Each scripted message is a list of fragments (str for text, bytes for
    binary). When the script runs out the peer closes normally, or the
    connection goes quiet forever when hang=True.
    """

    def __init__(self, messages: Sequence[Sequence[Union[str, bytes]]], hang: bool = False) -> None:
        self._messages: List[List[Union[str, bytes]]] = [list(m) for m in messages]
        self._hang = hang
        self.sent: List[str] = []
        self.closed: Optional[tuple] = None

    def recv_streaming(self):
        return self._stream()

    async def _stream(self):
        if not self._messages:
            if self._hang:
                await asyncio.Event().wait()
            raise ConnectionClosedOK(Close(1000, ""), Close(1000, ""), True)
        for fragment in self._messages.pop(0):
            yield fragment

    async def send(self, message: str) -> None:
        self.sent.append(message)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.closed is None:
            self.closed = (code, reason)

    @property
    def replies(self) -> List[dict]:
        return [json.loads(m) for m in self.sent]


@pytest.fixture
def red_png_b64() -> str:
    """Base64 of a 10x10 red PNG."""
    return encode_png_b64(10, 10)


@pytest.fixture
def print_message(red_png_b64):
    """Build a print request message as JSON text."""

    def build(image_data: Optional[str] = red_png_b64, file_name: Optional[str] = "t.png") -> str:
        payload = {"action": "print"}
        if image_data is not None:
            payload["imageData"] = image_data
        if file_name is not None:
            payload["fileName"] = file_name
        return json.dumps(payload)

    return build


@pytest.fixture
def page_bounds() -> PageBounds:
    return PageBounds(width_px=40, height_px=60)


@pytest.fixture
def mock_sink() -> MockPrinterSink:
    return MockPrinterSink()


@pytest.fixture
def dispatcher(mock_sink, page_bounds) -> PrintDispatcher:
    """Dispatcher with default (silent) feedback over a mock printer."""
    return PrintDispatcher(SerializedPrinter(mock_sink, page_bounds, timeout=5.0))
