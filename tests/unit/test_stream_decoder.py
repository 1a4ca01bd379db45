"""Unit tests for FrameDecoder and event line parsing."""

import pytest

from app.models.stream_decoder import (
    FrameDecoder,
    EventType,
    ParsedEvent,
    parse_line,
    TERMINATOR,
)


def decode_all(chunks):
    decoder = FrameDecoder()
    lines = []
    for chunk in chunks:
        lines.extend(decoder.feed(chunk))
    return lines, decoder.pending


class TestFrameDecoder:
    """Test FrameDecoder class."""

    def test_single_chunk_lines(self):
        """Test splitting one chunk into lines."""
        decoder = FrameDecoder()

        lines = decoder.feed(b"data: a\n\ndata: b\n")

        assert lines == ["data: a", "", "data: b"]
        assert decoder.pending == ""

    def test_partial_line_is_buffered(self):
        """Test unterminated tail is held back until its newline arrives."""
        decoder = FrameDecoder()

        assert decoder.feed(b"data: hel") == []
        assert decoder.pending == "data: hel"

        assert decoder.feed(b"lo\nda") == ["data: hello"]
        assert decoder.pending == "da"

    def test_crlf_line_endings(self):
        """Test carriage returns are stripped from line ends."""
        decoder = FrameDecoder()

        lines = decoder.feed(b"data: x\r\n\r\n")

        assert lines == ["data: x", ""]

    def test_crlf_split_across_chunks(self):
        """Test a CRLF split between chunks still yields a clean line."""
        lines, _ = decode_all([b"data: x\r", b"\n"])

        assert lines == ["data: x"]

    def test_multibyte_character_split_across_chunks(self):
        """Test a UTF-8 character split between reads decodes intact."""
        encoded = "data: €42 ✓\n".encode("utf-8")
        euro_start = encoded.index("€".encode("utf-8"))

        lines, _ = decode_all([encoded[:euro_start + 1], encoded[euro_start + 1:]])

        assert lines == ["data: €42 ✓"]
        assert "�" not in lines[0]

    def test_fragmentation_invariance(self, sse):
        """Test every two-way split yields the same lines as one chunk."""
        body = sse.body(['{"title":"Café ☕",', '"description":"D"}'])
        expected, expected_pending = decode_all([body])

        for cut in range(1, len(body)):
            lines, pending = decode_all([body[:cut], body[cut:]])
            assert lines == expected, f"split at byte {cut}"
            assert pending == expected_pending

    @pytest.mark.parametrize("size", [1, 2, 3, 7, 64])
    def test_fragmentation_invariance_fixed_sizes(self, sse, size):
        """Test fixed-size fragmentation yields the same lines."""
        body = sse.body(["{\"response\":", "\"Ça marche — $4,200 firm\"}"])
        expected, _ = decode_all([body])

        lines, _ = decode_all(sse.split_every(body, size))

        assert lines == expected

    def test_discard_returns_pending(self):
        """Test discard drops the unterminated fragment."""
        decoder = FrameDecoder()
        decoder.feed(b"data: [DO")

        assert decoder.discard() == "data: [DO"
        assert decoder.pending == ""

    def test_empty_chunk(self):
        """Test an empty read produces nothing."""
        decoder = FrameDecoder()

        assert decoder.feed(b"") == []


class TestParseLine:
    """Test parse_line function."""

    def test_delta_line(self):
        """Test a data line yields a delta payload."""
        event = parse_line('data: {"a": 1}')

        assert event == ParsedEvent(EventType.DELTA, '{"a": 1}')
        assert not event.is_sentinel

    def test_sentinel_line(self):
        """Test the terminator literal yields a sentinel."""
        event = parse_line(f"data: {TERMINATOR}")

        assert event.type is EventType.SENTINEL
        assert event.is_sentinel

    def test_prefix_without_space(self):
        """Test the space after the prefix is optional."""
        assert parse_line("data:[DONE]").is_sentinel
        assert parse_line('data:{"a":1}').payload == '{"a":1}'

    @pytest.mark.parametrize("line", ["", ": keep-alive", "event: message", "id: 7", "DATA: x"])
    def test_non_data_lines_are_ignored(self, line):
        """Test framing noise is discarded."""
        assert parse_line(line) is None

    def test_near_terminator_is_delta(self):
        """Test payloads merely containing the terminator are deltas."""
        assert parse_line("data: [DONE] ").type is EventType.DELTA
        assert parse_line('data: "[DONE]"').type is EventType.DELTA
