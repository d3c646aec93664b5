"""OpenAI-compatible chat completions endpoint."""

import asyncio
import json
import logging
from typing import Any, Mapping

import httpx
from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ...completions import CompletionTranslator, coerce_messages, normalize_messages
from ...core import (
    AuthenticationError,
    InvalidRequestError,
    UpstreamUnavailableError,
    get_client,
    iter_backend_events,
)

logger = logging.getLogger("abacus2api")

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
BEARER_PREFIX = "Bearer "


def _error(status_code: int, message: str, error_type: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "message": message,
                "type": error_type,
                "code": code,
            }
        },
    )


def _invalid_request(exc: InvalidRequestError) -> HTTPException:
    error_type = (
        "authentication_error" if isinstance(exc, AuthenticationError) else "invalid_request_error"
    )
    return _error(exc.status_code, exc.message, error_type, exc.code)


def extract_credential(headers: Mapping[str, str]) -> str:
    """Return the opaque credential from ``Authorization: Bearer <credential>``."""
    auth_header = headers.get("authorization") or ""
    if not auth_header.startswith(BEARER_PREFIX):
        raise AuthenticationError("A valid Authorization: Bearer header is required")
    credential = auth_header[len(BEARER_PREFIX):].strip()
    if not credential:
        raise AuthenticationError("Bearer credential is empty")
    return credential


def parse_payload(body: bytes) -> Mapping[str, Any]:
    try:
        payload = json.loads(body or b"")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidRequestError(f"Invalid JSON payload: {exc}", code="invalid_json") from exc
    if not isinstance(payload, Mapping):
        raise InvalidRequestError(
            "Request body must be a JSON object", code="invalid_json_shape"
        )
    return payload


def stream_flag(value: Any) -> bool:
    """Return the request's ``stream`` flag; absent or null means False."""
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidRequestError("stream must be a boolean", code="invalid_stream")
    return value


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions

    Every request opens a new backend conversation, posts the folded
    message history, and translates the backend stream into either an SSE
    response or a single JSON completion depending on ``stream``.
    """
    if request.method != "POST":
        raise _error(405, "Only POST is supported", "invalid_request_error", "method_not_allowed")

    try:
        credential = extract_credential(request.headers)
        payload = parse_payload(await request.body())
        messages = coerce_messages(payload.get("messages"))
        is_stream = stream_flag(payload.get("stream"))
    except InvalidRequestError as exc:
        logger.warning(f"Rejected chat completions request: {exc.message}")
        raise _invalid_request(exc) from exc

    raw_model = payload.get("model")
    model = raw_model if isinstance(raw_model, str) else ""
    normalized = normalize_messages(messages)
    logger.info(
        f"Processing request for model {model or '<unset>'}, stream={is_stream}, "
        f"messages={len(messages)}"
    )

    client = get_client()
    try:
        handle = await client.create_conversation(credential)
    except UpstreamUnavailableError as exc:
        raise _error(500, "Failed to create conversation", "upstream_error", "create_conversation_failed") from exc

    try:
        backend_stream = await client.send_message(
            credential, handle, normalized.composed_text, model
        )
    except UpstreamUnavailableError as exc:
        raise _error(500, "Failed to send message", "upstream_error", "send_message_failed") from exc

    events = iter_backend_events(backend_stream.aiter_bytes())

    if not is_stream:
        translator = CompletionTranslator(model)
        try:
            completion = await translator.aggregate(events)
        except httpx.HTTPError as exc:
            logger.error(f"Error reading backend stream from {backend_stream.url}: {exc}")
            raise _error(500, "Failed to read backend response", "upstream_error", "upstream_read_failed") from exc
        finally:
            await backend_stream.aclose()
        logger.info(f"Request for model {model} completed successfully")
        return JSONResponse(completion)

    translator = CompletionTranslator(model, disconnect_checker=request.is_disconnected)

    async def iterator():
        try:
            async for frame in translator.adapt_stream(events):
                yield frame
            logger.info(f"Stream for model {model} completed, {translator.accepted_segments} segments")
        except asyncio.CancelledError:
            logger.info(f"Streaming request for model {model} cancelled by client")
            raise
        except Exception as e:
            # Headers are already sent; the connection is aborted instead
            logger.error(f"Error during streaming from {backend_stream.url}: {e}")
            raise
        finally:
            await backend_stream.aclose()

    return StreamingResponse(
        iterator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
