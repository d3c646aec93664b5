"""Translate Abacus stream events into OpenAI chat completions.

Abacus events (one JSON record per line, see ``core.sse``)::

    {"type":"text","title":"Thinking...","segment":""}
    {"type":"text","segment":"Hel"}
    {"type":"text","segment":"lo"}
    {"end":true}

OpenAI Chat Completion SSE::

    data: {"object":"chat.completion.chunk","choices":[{"delta":{"content":"Hel"},"index":0}]}
    data: {"object":"chat.completion.chunk","choices":[{"delta":{"content":"lo"},"index":0}]}
    data: {"object":"chat.completion.chunk","choices":[{"delta":{"content":""},"index":0,"finish_reason":"stop"}]}
    data: [DONE]

Both the streaming and the non-streaming response are produced by the same
event loop (``CompletionTranslator.consume``); they differ only in what they
do with each accepted text segment.
"""

import asyncio
import enum
import json
import logging
import time
import uuid
from typing import AsyncIterator, Awaitable, Callable, Optional

from ..core.sse import BackendEvent
from ..types import ChatCompletionChunk, ChatCompletionResponse

logger = logging.getLogger("abacus2api")

DONE_FRAME = b"data: [DONE]\n\n"
FINISH_REASON_STOP = "stop"


class TranslatorState(enum.Enum):
    AWAITING_EVENTS = "awaiting_events"
    TERMINATED = "terminated"


def encode_sse_frame(payload: dict) -> bytes:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


class CompletionTranslator:
    """Projects one backend event stream onto one OpenAI completion.

    A translator is single-use: after the first terminal event or the end of
    the event stream it is TERMINATED and consumes nothing further.
    """

    def __init__(
        self,
        model: str,
        completion_id: Optional[str] = None,
        created: Optional[int] = None,
        disconnect_checker: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> None:
        """Initialize the translator.

        Args:
            model: Model name echoed in every chunk.
            completion_id: Id shared by all chunks (generated if omitted).
            created: Unix timestamp shared by all chunks (now if omitted).
            disconnect_checker: Awaitable polled before each event; when it
                returns True the stream is abandoned.
        """
        self.model = model
        self.completion_id = completion_id or f"chatcmpl-{uuid.uuid4().hex}"
        self.created = created if created is not None else int(time.time())
        self.disconnect_checker = disconnect_checker

        self.state = TranslatorState.AWAITING_EVENTS
        self.saw_terminal = False
        self.accepted_segments = 0

    async def consume(
        self, events: AsyncIterator[BackendEvent]
    ) -> AsyncIterator[str]:
        """Yield accepted text segments in arrival order.

        Thinking placeholders and non-text records are dropped. Iteration
        stops at the first terminal event (after yielding its segment, if it
        carries one) or when ``events`` is exhausted.
        """
        if self.state is TranslatorState.TERMINATED:
            raise RuntimeError("translator has already consumed a stream")

        try:
            async for event in events:
                if self.disconnect_checker and await self.disconnect_checker():
                    logger.info("Client disconnected, abandoning backend stream")
                    raise asyncio.CancelledError("client disconnected")
                if event.kind == "text" and not event.is_thinking_placeholder:
                    self.accepted_segments += 1
                    yield event.text_segment
                if event.is_terminal:
                    self.saw_terminal = True
                    return
            logger.debug("Backend stream ended without an end record")
        finally:
            self.state = TranslatorState.TERMINATED

    def build_chunk(
        self, content: str, finish_reason: Optional[str] = None
    ) -> ChatCompletionChunk:
        choice = {"delta": {"content": content}, "index": 0}
        if finish_reason is not None:
            choice["finish_reason"] = finish_reason
        return {
            "id": self.completion_id,
            "object": "chat.completion.chunk",
            "created": self.created,
            "model": self.model,
            "choices": [choice],
        }

    def build_completion(self, content: str) -> ChatCompletionResponse:
        return {
            "id": self.completion_id,
            "object": "chat.completion",
            "created": self.created,
            "model": self.model,
            "choices": [
                {
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": FINISH_REASON_STOP,
                }
            ],
        }

    async def adapt_stream(
        self, events: AsyncIterator[BackendEvent]
    ) -> AsyncIterator[bytes]:
        """Emit OpenAI SSE frames as soon as each segment arrives.

        The stop chunk is only sent when the backend signalled its end;
        a bare end of stream gets just the [DONE] sentinel.
        """
        async for segment in self.consume(events):
            yield encode_sse_frame(self.build_chunk(segment))

        if self.saw_terminal:
            yield encode_sse_frame(self.build_chunk("", FINISH_REASON_STOP))
        yield DONE_FRAME

    async def aggregate(
        self, events: AsyncIterator[BackendEvent]
    ) -> ChatCompletionResponse:
        """Drain the events into a single chat.completion."""
        parts: list[str] = []
        async for segment in self.consume(events):
            parts.append(segment)
        logger.debug(
            f"Aggregated {self.accepted_segments} segments "
            f"(terminal={self.saw_terminal})"
        )
        return self.build_completion("".join(parts))
