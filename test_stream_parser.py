#!/usr/bin/env python3
"""
Test the line-delimited streaming protocol parser in isolation.
"""

import httpx
import pytest

from aichat.exceptions import DecodeError, EmptyBodyError
from aichat.streaming import (
    LineDecoder,
    StreamingParser,
    WireLine,
    WireLineKind,
    parse_wire_line,
)
from conftest import ChunkedStream


class TestLineDecoder:

    def test_returns_complete_lines_and_carries_rest(self):
        decoder = LineDecoder()
        assert decoder.feed(b"one\ntw") == ["one"]
        assert decoder.feed(b"o\nthree") == ["two"]
        assert decoder.finish() == "three"

    def test_read_without_newline_yields_nothing(self):
        decoder = LineDecoder()
        assert decoder.feed(b"partial") == []
        assert decoder.feed(b"\n") == ["partial"]

    def test_multibyte_sequence_across_reads(self):
        data = "é€".encode("utf-8") + b"\n"
        decoder = LineDecoder()
        lines = []
        for i in range(len(data)):
            lines += decoder.feed(data[i:i + 1])
        assert lines == ["é€"]

    def test_invalid_bytes_are_replaced(self):
        decoder = LineDecoder()
        assert decoder.feed(b"a\xffb\n") == ["a�b"]

    def test_finish_flushes_incomplete_sequence(self):
        decoder = LineDecoder()
        decoder.feed("€".encode("utf-8")[:2])
        assert decoder.finish() == "�"


class TestParseWireLine:

    def test_text_line(self):
        assert parse_wire_line('0:"Hi\\n there"') == WireLine(
            kind=WireLineKind.TEXT, payload="Hi\n there", raw='0:"Hi\\n there"'
        )

    def test_text_line_with_trailing_carriage_return(self):
        assert parse_wire_line('0:"Hi"\r').payload == "Hi"

    def test_tool_call_payload_is_ignored(self):
        line = parse_wire_line("9:not even json")
        assert line.kind is WireLineKind.TOOL_CALL
        assert line.payload is None

    def test_tool_result_line(self):
        line = parse_wire_line('a:{"toolCallId":"c1","result":"sunny"}')
        assert line.kind is WireLineKind.TOOL_RESULT
        assert line.payload == "sunny"

    def test_tool_result_non_string_result(self):
        assert parse_wire_line('a:{"result":["天気", 1]}').payload == '["天気", 1]'

    @pytest.mark.parametrize("raw", ["", "x", "1:\"no\"", "e:{}", "d:{}", " 0:\"x\""])
    def test_other_lines_are_unknown(self, raw):
        assert parse_wire_line(raw).kind is WireLineKind.UNKNOWN

    @pytest.mark.parametrize(
        "raw",
        ["0:not-json", "0:42", "0:", "a:{broken", "a:{}", 'a:"result"'],
    )
    def test_malformed_payloads_raise(self, raw):
        with pytest.raises(DecodeError):
            parse_wire_line(raw)


class TestStreamingParser:

    @pytest.mark.asyncio
    async def test_parses_lines_and_counts(self):
        response = httpx.Response(
            200, stream=ChunkedStream(['0:"a"\n9:{}\nf:{}\n', 'a:{"result":"r"}\n'])
        )
        parser = StreamingParser()

        lines = [line async for line in parser.parse_lines(response)]

        assert [line.kind for line in lines] == [
            WireLineKind.TEXT,
            WireLineKind.TOOL_CALL,
            WireLineKind.UNKNOWN,
            WireLineKind.TOOL_RESULT,
        ]
        stats = parser.get_stats()
        assert stats["lines"] == 4
        assert stats["text_chunks"] == 1
        assert stats["tool_calls"] == 1
        assert stats["tool_results"] == 1
        assert stats["ignored_lines"] == 1
        assert stats["bytes_received"] == len('0:"a"\n9:{}\nf:{}\na:{"result":"r"}\n')

    @pytest.mark.asyncio
    async def test_empty_body_raises(self):
        response = httpx.Response(200, stream=ChunkedStream([]))

        with pytest.raises(EmptyBodyError):
            [line async for line in StreamingParser().parse_lines(response)]

    @pytest.mark.asyncio
    async def test_unterminated_tail_is_not_parsed(self):
        response = httpx.Response(200, stream=ChunkedStream(['0:"a"\n0:{broken']))

        lines = [line async for line in StreamingParser().parse_lines(response)]

        assert [line.payload for line in lines] == ["a"]
