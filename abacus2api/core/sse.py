"""Line parser for the Abacus send-message stream.

The backend answers with ``text/event-stream`` but each line is a bare JSON
record rather than an SSE ``data:`` frame::

    {"type":"text","title":"Thinking...","segment":"","isSpinny":true}
    {"type":"text","segment":"Hel","messageId":"m1"}
    {"type":"text","segment":"lo","messageId":"m1"}
    {"end":true,"success":true}

Lines that fail to decode, including records whose known fields carry the
wrong JSON type, are skipped; a clean end of input without an
``end`` record is not an error.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional, Union

logger = logging.getLogger("abacus2api")

THINKING_PLACEHOLDER_TITLE = "Thinking..."

# Expected JSON types of known record fields; null is allowed
RECORD_FIELD_TYPES = {
    "type": str,
    "title": str,
    "segment": str,
    "end": bool,
    "success": bool,
}


@dataclass(frozen=True)
class TextEvent:
    """A ``type == "text"`` record."""

    segment: str
    is_thinking_placeholder: bool = False
    is_terminal: bool = False

    kind = "text"

    @property
    def text_segment(self) -> str:
        return self.segment


@dataclass(frozen=True)
class OtherEvent:
    """Any record that is not text: status, image, or the bare end marker."""

    record_type: str = ""
    is_terminal: bool = False

    kind = "other"
    is_thinking_placeholder = False
    text_segment = ""


BackendEvent = Union[TextEvent, OtherEvent]


def event_from_record(record: Mapping[str, Any]) -> BackendEvent:
    """Map a decoded stream record to a BackendEvent."""
    record_type = record.get("type")
    is_terminal = record.get("end") is True
    if record_type == "text":
        segment = record.get("segment")
        return TextEvent(
            segment=segment if isinstance(segment, str) else "",
            is_thinking_placeholder=record.get("title") == THINKING_PLACEHOLDER_TITLE,
            is_terminal=is_terminal,
        )
    return OtherEvent(
        record_type=record_type if isinstance(record_type, str) else "",
        is_terminal=is_terminal,
    )


def decode_backend_line(line: str) -> Optional[BackendEvent]:
    """Decode one stream line. Returns None for blank or undecodable lines."""
    line = line.strip()
    if not line:
        return None

    try:
        record = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Skipping undecodable backend line: %s", line[:100])
        return None

    if not isinstance(record, dict):
        logger.debug("Skipping non-object backend line: %s", line[:100])
        return None
    for field, expected in RECORD_FIELD_TYPES.items():
        value = record.get(field)
        if value is not None and not isinstance(value, expected):
            logger.debug("Skipping backend line with mistyped %r: %s", field, line[:100])
            return None
    return event_from_record(record)


class BackendLineDecoder:
    """Incremental newline splitter over raw byte chunks.

    Bytes are buffered until a newline arrives, so records split across
    network reads (or multi-byte characters split mid-sequence) decode
    correctly.
    """

    def __init__(self) -> None:
        self._buffer = b""

    def feed(self, chunk: bytes) -> list[BackendEvent]:
        if not chunk:
            return []
        self._buffer += chunk
        events: list[BackendEvent] = []
        while True:
            newline = self._buffer.find(b"\n")
            if newline < 0:
                break
            raw_line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]
            event = decode_backend_line(raw_line.decode("utf-8", errors="replace"))
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> list[BackendEvent]:
        """Decode whatever is left once the stream has ended."""
        if not self._buffer:
            return []
        raw_line, self._buffer = self._buffer, b""
        event = decode_backend_line(raw_line.decode("utf-8", errors="replace"))
        return [event] if event is not None else []


async def iter_backend_events(
    byte_stream: AsyncIterator[bytes],
) -> AsyncIterator[BackendEvent]:
    """Lazily yield BackendEvents from a byte stream, in arrival order.

    Errors raised by ``byte_stream`` itself propagate to the caller.
    """
    decoder = BackendLineDecoder()
    async for chunk in byte_stream:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.flush():
        yield event
