"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Generator, Iterable

import httpx
import pytest


# =============================================================================
# Transport Registry Fixtures
# =============================================================================


@pytest.fixture
def clear_transport_registry() -> Generator[None, None, None]:
    """Clear upstream transport registry after test.

    Use this fixture in tests that register fake transports.
    """
    from abacus2api.core.upstream_transport import clear_upstream_transports

    yield
    clear_upstream_transports()


# =============================================================================
# Harness Fixtures
# =============================================================================


@pytest.fixture
def abacus_harness(
    clear_transport_registry: None,
) -> Generator[tuple[Any, Any], None, None]:
    """Create a proxy harness talking to an in-process fake Abacus backend.

    Returns:
        Tuple of (FakeAbacus, ProxyHarness)

    Usage:
        async def test_chat(abacus_harness):
            upstream, harness = abacus_harness
            upstream.enqueue_text_stream(["Hel", "lo"])
            async with harness.make_async_client() as client:
                ...
    """
    from abacus2api.core.upstream_transport import route_backend
    from abacus2api.testing import FakeAbacus, ProxyHarness

    upstream = FakeAbacus()
    harness = ProxyHarness()
    route_backend(harness.settings, httpx.ASGITransport(app=upstream.app))

    try:
        yield upstream, harness
    finally:
        harness.close()


# =============================================================================
# Helper Functions for Tests
# =============================================================================


async def aiter_chunks(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    """Helper to create async iterator from list of bytes."""
    for chunk in chunks:
        yield chunk


def auth_headers(credential: str = "session-cookie=abc") -> dict[str, str]:
    return {"Authorization": f"Bearer {credential}"}


def parse_sse_frames(body: bytes) -> list[Any]:
    """Split an OpenAI SSE body into decoded JSON payloads and "[DONE]"."""
    frames: list[Any] = []
    for block in body.decode("utf-8").split("\n\n"):
        block = block.strip()
        if not block:
            continue
        assert block.startswith("data: "), block
        data = block[len("data: "):]
        frames.append(data if data == "[DONE]" else json.loads(data))
    return frames
