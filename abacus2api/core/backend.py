"""Backend configuration and utilities."""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger("abacus2api")

DEFAULT_TIMEOUT = 30.0
DEFAULT_STREAM_IDLE_TIMEOUT = 300.0

DEFAULT_CREATE_CONVERSATION_URL = (
    "https://pa002.abacus.ai/cluster-proxy/api/createDeploymentConversation"
)
DEFAULT_SEND_MESSAGE_URL = "https://pa002.abacus.ai/api/_chatLLMSendMessageSSE"
DEFAULT_DEPLOYMENT_ID = "d892fb336"
DEFAULT_EXTERNAL_APPLICATION_ID = "ca852b1e2"

# Browser identity the Abacus web app presents. Host is derived from the URL.
DEFAULT_BROWSER_HEADERS: dict[str, str] = {
    "sec-ch-ua-platform": "Windows",
    "sec-ch-ua": '"Not(A:Brand";v="99", "Microsoft Edge";v="133", "Chromium";v="133"',
    "sec-ch-ua-mobile": "?0",
    "X-Abacus-Org-Host": "apps",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36 Edg/133.0.0.0"
    ),
    "Sec-Fetch-Site": "same-site",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Dest": "empty",
}

SENSITIVE_HEADERS = {"cookie", "authorization", "set-cookie"}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _parse_timeout(value: Any, default: float, name: str) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"backend.{name} must be a number, got {value!r}") from exc
    if parsed <= 0:
        raise ConfigurationError(f"backend.{name} must be positive, got {parsed}")
    return parsed


@dataclass(frozen=True)
class BackendSettings:
    """Static values used for every call to the Abacus backend."""

    create_conversation_url: str = DEFAULT_CREATE_CONVERSATION_URL
    send_message_url: str = DEFAULT_SEND_MESSAGE_URL
    deployment_id: str = DEFAULT_DEPLOYMENT_ID
    external_application_id: str = DEFAULT_EXTERNAL_APPLICATION_ID
    conversation_name: str = "New Chat"
    timezone: str = "Asia/Hong_Kong"
    language: str = "zh-CN"
    is_desktop: bool = True
    timeout: float = DEFAULT_TIMEOUT
    stream_idle_timeout: float = DEFAULT_STREAM_IDLE_TIMEOUT
    browser_headers: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_BROWSER_HEADERS)
    )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "BackendSettings":
        """Build settings from the ``backend`` section of the proxy config.

        Every key is optional; omitted keys keep the defaults above. A
        ``headers`` mapping is merged over the default browser headers, and a
        header set to null is removed.
        """
        section = config.get("backend") or {}
        if not isinstance(section, Mapping):
            raise ConfigurationError("backend section must be a mapping")

        chat_cfg = section.get("chat_config") or {}
        headers = dict(DEFAULT_BROWSER_HEADERS)
        for key, value in (section.get("headers") or {}).items():
            if value is None:
                headers.pop(key, None)
            else:
                headers[str(key)] = str(value)

        defaults = cls()
        return cls(
            create_conversation_url=str(
                section.get("create_conversation_url", defaults.create_conversation_url)
            ),
            send_message_url=str(
                section.get("send_message_url", defaults.send_message_url)
            ),
            deployment_id=str(section.get("deployment_id", defaults.deployment_id)),
            external_application_id=str(
                section.get("external_application_id", defaults.external_application_id)
            ),
            conversation_name=str(
                section.get("conversation_name", defaults.conversation_name)
            ),
            timezone=str(chat_cfg.get("timezone", defaults.timezone)),
            language=str(chat_cfg.get("language", defaults.language)),
            is_desktop=_parse_bool(section.get("is_desktop", defaults.is_desktop)),
            timeout=_parse_timeout(section.get("timeout"), DEFAULT_TIMEOUT, "timeout"),
            stream_idle_timeout=_parse_timeout(
                section.get("stream_idle_timeout"),
                DEFAULT_STREAM_IDLE_TIMEOUT,
                "stream_idle_timeout",
            ),
            browser_headers=headers,
        )


def build_outbound_headers(
    settings: BackendSettings,
    credential: str,
    extra: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Decorate an outbound backend call with browser identity and the cookie."""
    headers = dict(settings.browser_headers)
    if extra:
        headers.update(extra)
    headers["Cookie"] = credential
    return headers


def _safe_headers_for_log(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        key: ("***" if key.lower() in SENSITIVE_HEADERS else value)
        for key, value in headers.items()
    }


def format_httpx_error(exc: Any, url: Optional[str] = None, timeout: Optional[float] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    import httpx

    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    request = None
    try:
        request = exc.request
    except (AttributeError, RuntimeError):
        # httpx raises RuntimeError when the request was never attached
        request = None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")
    elif url:
        parts.append(f"url={url}")

    if isinstance(exc, httpx.TimeoutException):
        parts.append(f"timeout={timeout or DEFAULT_TIMEOUT}s")

    return "; ".join(parts)
