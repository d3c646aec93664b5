"""Tests for the Abacus stream line parser."""

import httpx
import pytest

from abacus2api.core.sse import (
    BackendLineDecoder,
    OtherEvent,
    TextEvent,
    decode_backend_line,
    event_from_record,
    iter_backend_events,
)

from conftest import aiter_chunks


class TestDecodeBackendLine:
    """Tests for decoding single lines."""

    def test_text_record(self):
        event = decode_backend_line('{"type":"text","segment":"Hel","messageId":"m1"}')
        assert event == TextEvent(segment="Hel")
        assert event.kind == "text"
        assert event.text_segment == "Hel"
        assert not event.is_thinking_placeholder
        assert not event.is_terminal

    def test_thinking_placeholder(self):
        event = decode_backend_line('{"type":"text","title":"Thinking...","segment":"ignored"}')
        assert event.is_thinking_placeholder
        assert event.text_segment == "ignored"

    def test_end_record_is_terminal_other_event(self):
        event = decode_backend_line('{"end":true,"success":true}')
        assert isinstance(event, OtherEvent)
        assert event.kind == "other"
        assert event.is_terminal
        assert event.text_segment == ""

    def test_terminal_text_record(self):
        event = decode_backend_line('{"type":"text","segment":"!","end":true}')
        assert event == TextEvent(segment="!", is_terminal=True)

    def test_non_text_record(self):
        event = decode_backend_line('{"type":"image","segment":"http://img"}')
        assert event == OtherEvent(record_type="image")
        assert not event.is_thinking_placeholder

    @pytest.mark.parametrize("line", ["", "   ", "not json", '{"type":"te', "[1, 2]", '"text"'])
    def test_undecodable_lines_are_skipped(self, line):
        assert decode_backend_line(line) is None

    @pytest.mark.parametrize("line", ['data: {"type":"text","segment":"x"}', "data: [DONE]"])
    def test_sse_framed_lines_are_not_records(self, line):
        assert decode_backend_line(line) is None

    @pytest.mark.parametrize(
        "line",
        [
            '{"type":"text","segment":"x","end":"false"}',
            '{"type":"text","segment":"x","end":1}',
            '{"end":"no"}',
            '{"type":"text","segment":42}',
            '{"type":"text","segment":["x"]}',
            '{"type":"text","title":true,"segment":"x"}',
            '{"type":7,"segment":"x"}',
            '{"end":true,"success":"yes"}',
        ],
    )
    def test_mistyped_fields_skip_the_line(self, line):
        assert decode_backend_line(line) is None

    def test_null_fields_are_tolerated(self):
        event = decode_backend_line('{"type":"text","segment":"x","title":null,"end":null}')
        assert event == TextEvent(segment="x")

    def test_missing_segment_defaults_to_empty(self):
        assert event_from_record({"type": "text"}).text_segment == ""


class TestBackendLineDecoder:
    """Tests for incremental splitting of byte chunks."""

    def test_record_split_across_chunks(self):
        decoder = BackendLineDecoder()
        assert decoder.feed(b'{"type":"text",') == []
        events = decoder.feed(b'"segment":"Hi"}\n{"end":true}\n')
        assert [e.text_segment for e in events] == ["Hi", ""]
        assert events[1].is_terminal

    def test_multibyte_character_split_across_chunks(self):
        encoded = '{"type":"text","segment":"héllo"}\n'.encode("utf-8")
        split_at = encoded.index("é".encode("utf-8")) + 1
        decoder = BackendLineDecoder()
        assert decoder.feed(encoded[:split_at]) == []
        events = decoder.feed(encoded[split_at:])
        assert events == [TextEvent(segment="héllo")]

    def test_blank_and_malformed_lines_skipped(self):
        decoder = BackendLineDecoder()
        events = decoder.feed(
            b'\n  \n{"type":"text","segment":"a"}\ngarbage\r\n{"type":"text","segment":"b"}\n'
        )
        assert [e.text_segment for e in events] == ["a", "b"]

    def test_flush_decodes_trailing_line(self):
        decoder = BackendLineDecoder()
        assert decoder.feed(b'{"type":"text","segment":"tail"}') == []
        assert decoder.flush() == [TextEvent(segment="tail")]
        assert decoder.flush() == []


class TestIterBackendEvents:
    """Tests for the async event iterator."""

    @pytest.mark.asyncio
    async def test_yields_events_in_order_until_eof(self):
        chunks = [
            b'{"type":"text","segment":"1"}\n{"type":"te',
            b'xt","segment":"2"}\nnope\n',
            b'{"type":"text","segment":"3"}',
        ]
        events = [event async for event in iter_backend_events(aiter_chunks(chunks))]
        assert [e.text_segment for e in events] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        events = [event async for event in iter_backend_events(aiter_chunks([]))]
        assert events == []

    @pytest.mark.asyncio
    async def test_stream_errors_propagate(self):
        async def failing():
            yield b'{"type":"text","segment":"ok"}\n'
            raise httpx.ReadError("connection reset")

        seen = []
        with pytest.raises(httpx.ReadError):
            async for event in iter_backend_events(failing()):
                seen.append(event)
        assert seen == [TextEvent(segment="ok")]

    @pytest.mark.asyncio
    async def test_mistyped_end_does_not_terminate(self):
        chunks = [
            b'{"type":"text","segment":"a","end":"false"}\n',
            b'{"type":"text","segment":"b"}\n{"end":true}\n',
        ]
        events = [event async for event in iter_backend_events(aiter_chunks(chunks))]
        assert [e.text_segment for e in events] == ["b", ""]
        assert [e.is_terminal for e in events] == [False, True]
