"""Core module initialization."""

from .backend import BackendSettings, build_outbound_headers, format_httpx_error
from .client import AbacusClient, BackendStream, ConversationHandle
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    InvalidRequestError,
    ProxyError,
    UpstreamUnavailableError,
)
from .registry import get_client, set_client
from .sse import (
    BackendEvent,
    BackendLineDecoder,
    OtherEvent,
    TextEvent,
    decode_backend_line,
    iter_backend_events,
)

__all__ = [
    "AbacusClient",
    "AuthenticationError",
    "BackendEvent",
    "BackendLineDecoder",
    "BackendSettings",
    "BackendStream",
    "ConfigurationError",
    "ConversationHandle",
    "InvalidRequestError",
    "OtherEvent",
    "ProxyError",
    "TextEvent",
    "UpstreamUnavailableError",
    "build_outbound_headers",
    "decode_backend_line",
    "format_httpx_error",
    "get_client",
    "iter_backend_events",
    "set_client",
]
