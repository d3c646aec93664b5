"""Per-host transport overrides for the Abacus endpoints.

Tests and in-process simulations register an ``httpx`` transport (usually an
``ASGITransport`` wrapping ``FakeAbacus`` or a ``MockTransport``) for a backend
host. ``AbacusClient`` looks the host up before each call and falls back to
the real network when nothing is registered.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import httpx

if TYPE_CHECKING:
    from .backend import BackendSettings

logger = logging.getLogger("abacus2api")

_TRANSPORTS: dict[str, httpx.AsyncBaseTransport] = {}


def _host_key(url_or_host: str) -> str:
    if "://" in url_or_host:
        return httpx.URL(url_or_host).netloc.decode("ascii").lower()
    return url_or_host.strip().lower()


def register_upstream_transport(host: str, transport: httpx.AsyncBaseTransport) -> None:
    """Route every backend call to ``host`` (netloc) through ``transport``."""
    if not host:
        raise ValueError("host is required")
    key = _host_key(host)
    _TRANSPORTS[key] = transport
    logger.debug("Registered backend transport for host '%s'", key)


def route_backend(settings: "BackendSettings", transport: httpx.AsyncBaseTransport) -> None:
    """Register ``transport`` for the hosts of both configured endpoints."""
    for url in (settings.create_conversation_url, settings.send_message_url):
        register_upstream_transport(_host_key(url), transport)


def clear_upstream_transports() -> None:
    _TRANSPORTS.clear()


def get_upstream_transport(url: str) -> Optional[httpx.AsyncBaseTransport]:
    """Return the transport registered for ``url``'s host, if any."""
    if not url or "://" not in url:
        return None
    return _TRANSPORTS.get(_host_key(url))
