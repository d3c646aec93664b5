"""Testing utilities for in-process proxy simulations."""

from .fake_upstream import (
    CREATE_CONVERSATION_PATH,
    SEND_MESSAGE_PATH,
    FakeAbacus,
    UpstreamResponse,
    build_text_records,
)
from .proxy_harness import FAKE_BACKEND_HOST, ProxyHarness, build_test_settings

__all__ = [
    "CREATE_CONVERSATION_PATH",
    "FAKE_BACKEND_HOST",
    "FakeAbacus",
    "ProxyHarness",
    "SEND_MESSAGE_PATH",
    "UpstreamResponse",
    "build_test_settings",
    "build_text_records",
]
