"""
Stream Tests
============

Tests for frame reassembly and the websockets transport adapter.
"""

import asyncio
import json

import pytest

from printsocket.protocol.decoder import decode_message
from printsocket.stream import (
    FrameAccumulator,
    FrameTooLarge,
    FrameType,
    InvalidFramePayload,
    WireFrame,
    read_frames,
)

from conftest import FakeConnection


def split_bytes(data: bytes, cuts):
    """Split data at the given byte offsets into text frames."""
    bounds = [0, *sorted(cuts), len(data)]
    pieces = [data[a:b] for a, b in zip(bounds, bounds[1:])]
    return [
        WireFrame.text(piece, fin=(i == len(pieces) - 1))
        for i, piece in enumerate(pieces)
    ]


class TestFrameAccumulator:
    """Tests for FrameAccumulator."""

    def test_single_frame_message(self):
        """A final text frame yields its text immediately."""
        accumulator = FrameAccumulator()
        assert accumulator.feed(WireFrame.text(b'{"action": "ping"}')) == '{"action": "ping"}'
        assert accumulator.messages_completed == 1
        assert accumulator.buffered_bytes == 0

    def test_partial_frames_buffer_until_fin(self):
        """Nothing is yielded before the final frame."""
        accumulator = FrameAccumulator()
        assert accumulator.feed(WireFrame.text(b'{"act', fin=False)) is None
        assert accumulator.buffered_bytes == 5
        assert accumulator.feed(WireFrame.text(b'ion": "ping"}')) == '{"action": "ping"}'

    @pytest.mark.parametrize("cuts", [[], [1], [7, 8, 9], [3, 20, 41], list(range(1, 60, 4))])
    def test_reassembly_matches_single_frame(self, print_message, cuts):
        """Any split of a message decodes to the same request."""
        data = print_message().encode("utf-8")
        accumulator = FrameAccumulator()

        results = [accumulator.feed(frame) for frame in split_bytes(data, cuts)]

        assert results[:-1] == [None] * (len(results) - 1)
        assert decode_message(results[-1]) == decode_message(data.decode("utf-8"))

    def test_code_point_split_across_frames(self):
        """Multi-byte UTF-8 characters survive being split mid-sequence."""
        data = json.dumps({"action": "print", "fileName": "étiquette €.png"}, ensure_ascii=False).encode("utf-8")
        euro = data.index("€".encode("utf-8"))
        accumulator = FrameAccumulator()

        frames = split_bytes(data, [euro + 1, euro + 2])
        message = [accumulator.feed(frame) for frame in frames][-1]

        assert decode_message(message).file_name == "étiquette €.png"

    def test_consecutive_messages_are_independent(self):
        """The buffer is reset after each complete message."""
        accumulator = FrameAccumulator()
        accumulator.feed(WireFrame.text(b"first", fin=False))
        assert accumulator.feed(WireFrame.text(b"-1")) == "first-1"
        assert accumulator.feed(WireFrame.text(b"second")) == "second"
        assert accumulator.messages_completed == 2

    def test_binary_frames_are_ignored(self):
        """Binary frames do not mix into text messages."""
        accumulator = FrameAccumulator()
        assert accumulator.feed(WireFrame(b"\x00\x01", True, FrameType.BINARY)) is None
        assert accumulator.buffered_bytes == 0
        assert accumulator.feed(WireFrame.text(b"text")) == "text"

    def test_close_frame_requests_shutdown(self):
        """A close frame is honoured even with a partial message buffered."""
        accumulator = FrameAccumulator()
        accumulator.feed(WireFrame.text(b"partial", fin=False))
        assert accumulator.feed(WireFrame.close()) is None
        assert accumulator.close_requested

    def test_message_over_limit_raises(self):
        """Growing past the limit fails and discards the buffer."""
        accumulator = FrameAccumulator(max_message_bytes=10)
        accumulator.feed(WireFrame.text(b"123456", fin=False))

        with pytest.raises(FrameTooLarge) as exc_info:
            accumulator.feed(WireFrame.text(b"7890ab", fin=False))

        assert exc_info.value.limit == 10
        assert exc_info.value.size == 12
        assert accumulator.buffered_bytes == 0

    def test_message_at_limit_is_accepted(self):
        accumulator = FrameAccumulator(max_message_bytes=10)
        assert accumulator.feed(WireFrame.text(b"0123456789")) == "0123456789"

    def test_invalid_utf8_raises(self):
        accumulator = FrameAccumulator()
        with pytest.raises(InvalidFramePayload):
            accumulator.feed(WireFrame.text(b"\xff\xfe"))

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            FrameAccumulator(max_message_bytes=0)


class TestReadFrames:
    """Tests for the transport adapter."""

    def test_marks_only_last_fragment_final(self):
        """Fragments become frames with fin set on the last one."""
        connection = FakeConnection([["ab", "cd", "ef"], ["single"]])

        async def collect():
            return [frame async for frame in read_frames(connection)]

        frames = asyncio.run(collect())

        assert [(f.data, f.fin, f.opcode) for f in frames] == [
            (b"ab", False, FrameType.TEXT),
            (b"cd", False, FrameType.TEXT),
            (b"ef", True, FrameType.TEXT),
            (b"single", True, FrameType.TEXT),
            (b"", True, FrameType.CLOSE),
        ]

    def test_binary_fragments_keep_their_type(self):
        connection = FakeConnection([[b"\x01\x02"]])

        async def collect():
            return [frame async for frame in read_frames(connection)]

        frames = asyncio.run(collect())

        assert frames[0].opcode is FrameType.BINARY
        assert frames[0].data == b"\x01\x02"
        assert frames[-1].opcode is FrameType.CLOSE
