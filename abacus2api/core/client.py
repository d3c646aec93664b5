"""HTTP client for the Abacus ChatLLM backend."""

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator

import httpx

from .backend import (
    BackendSettings,
    _safe_headers_for_log,
    build_outbound_headers,
    format_httpx_error,
)
from .exceptions import UpstreamUnavailableError
from .upstream_transport import get_upstream_transport
from ..types import SendMessageRequest

logger = logging.getLogger("abacus2api")

SSE_REQUEST_HEADERS = {
    "Accept": "text/event-stream",
    "Content-Type": "text/plain;charset=UTF-8",
}


@dataclass(frozen=True)
class ConversationHandle:
    """Identifiers returned by the conversation bootstrap call."""

    deployment_conversation_id: str
    external_application_id: str


class BackendStream:
    """Body of a send-message response, read incrementally.

    Owns the httpx client and response; ``aclose`` releases both and is safe
    to call more than once.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response, url: str) -> None:
        self._client = client
        self._response = response
        self.url = url
        self.closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        return self._response.aiter_bytes()

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        logger.debug(f"Closing backend stream for {self.url}")
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()

    async def __aenter__(self) -> "BackendStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class AbacusClient:
    """Issues the bootstrap and send-message calls to the backend."""

    def __init__(self, settings: BackendSettings) -> None:
        self.settings = settings

    async def create_conversation(self, credential: str) -> ConversationHandle:
        """Create a fresh deployment conversation for one chat request.

        Raises:
            UpstreamUnavailableError: On transport failure, an HTTP error
                status, or a body that does not carry a conversation id.
        """
        settings = self.settings
        url = settings.create_conversation_url
        body = {
            "deploymentId": settings.deployment_id,
            "name": settings.conversation_name,
            "externalApplicationId": settings.external_application_id,
        }
        headers = build_outbound_headers(
            settings, credential, {"Content-Type": "application/json"}
        )
        logger.debug(f"Creating conversation via {url}")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Bootstrap headers: %s", _safe_headers_for_log(headers))

        transport = get_upstream_transport(url)
        try:
            async with httpx.AsyncClient(
                timeout=settings.timeout, transport=transport, follow_redirects=True
            ) as client:
                resp = await client.post(url, headers=headers, content=json.dumps(body))
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, url=url, timeout=settings.timeout)
            logger.error(f"Conversation bootstrap failed: {detail}")
            raise UpstreamUnavailableError(f"create conversation failed: {detail}") from exc

        if resp.status_code >= 400:
            logger.error(
                f"Conversation bootstrap returned status {resp.status_code}: {resp.text[:200]}"
            )
            raise UpstreamUnavailableError(
                f"create conversation returned status {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error(f"Conversation bootstrap returned invalid JSON: {exc}")
            raise UpstreamUnavailableError("create conversation returned invalid JSON") from exc

        return _parse_conversation(payload, self.settings.external_application_id)

    def build_chat_request(
        self, handle: ConversationHandle, message: str, model: str
    ) -> SendMessageRequest:
        settings = self.settings
        return {
            "requestId": str(uuid.uuid4()),
            "deploymentConversationId": handle.deployment_conversation_id,
            "message": message,
            "isDesktop": settings.is_desktop,
            "chatConfig": {
                "timezone": settings.timezone,
                "language": settings.language,
            },
            "llmName": model,
            "externalApplicationId": handle.external_application_id,
        }

    async def send_message(
        self,
        credential: str,
        handle: ConversationHandle,
        message: str,
        model: str,
    ) -> BackendStream:
        """Post a message and return the backend's SSE body unread.

        The backend always answers as a stream; callers that want a single
        response drain it themselves.

        Raises:
            UpstreamUnavailableError: On transport failure or an HTTP error status.
        """
        settings = self.settings
        url = settings.send_message_url
        chat_request = self.build_chat_request(handle, message, model)
        headers = build_outbound_headers(settings, credential, SSE_REQUEST_HEADERS)
        content = json.dumps(chat_request, ensure_ascii=False).encode("utf-8")

        # Reads are bounded so a backend that never sends its end record
        # cannot hold the request open forever.
        stream_timeout = httpx.Timeout(
            connect=settings.timeout,
            read=settings.stream_idle_timeout,
            write=settings.timeout,
            pool=settings.timeout,
        )
        transport = get_upstream_transport(url)
        client = httpx.AsyncClient(
            timeout=stream_timeout, transport=transport, follow_redirects=True
        )
        try:
            request = client.build_request("POST", url, headers=headers, content=content)
            logger.debug(
                f"Sending message to {url} (model={model}, {len(content)} bytes)"
            )
            resp = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            detail = format_httpx_error(exc, url=url, timeout=settings.timeout)
            logger.error(f"Send message failed: {detail}")
            raise UpstreamUnavailableError(f"send message failed: {detail}") from exc
        except BaseException:
            await client.aclose()
            raise

        stream = BackendStream(client, resp, url)
        if resp.status_code >= 400:
            data = await resp.aread()
            await stream.aclose()
            logger.error(
                f"Send message returned status {resp.status_code}: "
                f"{data[:200].decode('utf-8', errors='replace')}"
            )
            raise UpstreamUnavailableError(
                f"send message returned status {resp.status_code}",
                status_code=resp.status_code,
            )

        logger.info(f"Backend stream opened from {url}, status {resp.status_code}")
        return stream


def _parse_conversation(payload: Any, default_application_id: str) -> ConversationHandle:
    if not isinstance(payload, dict):
        raise UpstreamUnavailableError("create conversation returned a non-object body")
    if payload.get("success") is False:
        error = payload.get("error") or "success=false"
        logger.error(f"Conversation bootstrap rejected: {error}")
        raise UpstreamUnavailableError(f"create conversation rejected: {error}")

    result = payload.get("result")
    if not isinstance(result, dict):
        raise UpstreamUnavailableError("create conversation response has no result")
    conversation_id = result.get("deploymentConversationId")
    if not isinstance(conversation_id, str) or not conversation_id:
        raise UpstreamUnavailableError(
            "create conversation response has no deploymentConversationId"
        )
    application_id = result.get("externalApplicationId")
    return ConversationHandle(
        deployment_conversation_id=conversation_id,
        external_application_id=application_id if isinstance(application_id, str) and application_id else default_application_id,
    )
