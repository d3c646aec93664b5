"""Tests for backend settings and header decoration."""

import httpx
import pytest

from abacus2api.core.backend import (
    DEFAULT_BROWSER_HEADERS,
    BackendSettings,
    _safe_headers_for_log,
    build_outbound_headers,
    format_httpx_error,
)
from abacus2api.core.exceptions import ConfigurationError


class TestBackendSettings:
    """Tests for BackendSettings.from_config."""

    def test_defaults_when_section_missing(self):
        settings = BackendSettings.from_config({})
        assert settings == BackendSettings()
        assert settings.deployment_id == "d892fb336"
        assert settings.external_application_id == "ca852b1e2"
        assert settings.send_message_url.endswith("/api/_chatLLMSendMessageSSE")

    def test_reads_overrides(self):
        settings = BackendSettings.from_config(
            {
                "backend": {
                    "create_conversation_url": "http://b.local/create",
                    "send_message_url": "http://b.local/send",
                    "deployment_id": "dep",
                    "external_application_id": "app",
                    "conversation_name": "Proxy Chat",
                    "is_desktop": "false",
                    "chat_config": {"timezone": "UTC", "language": "en-US"},
                    "timeout": 10,
                    "stream_idle_timeout": "45",
                }
            }
        )
        assert settings.create_conversation_url == "http://b.local/create"
        assert settings.send_message_url == "http://b.local/send"
        assert settings.deployment_id == "dep"
        assert settings.external_application_id == "app"
        assert settings.conversation_name == "Proxy Chat"
        assert settings.is_desktop is False
        assert settings.timezone == "UTC"
        assert settings.language == "en-US"
        assert settings.timeout == 10.0
        assert settings.stream_idle_timeout == 45.0

    def test_headers_merge_over_defaults(self):
        settings = BackendSettings.from_config(
            {"backend": {"headers": {"User-Agent": "custom", "sec-ch-ua-mobile": None, "X-Extra": 1}}}
        )
        assert settings.browser_headers["User-Agent"] == "custom"
        assert "sec-ch-ua-mobile" not in settings.browser_headers
        assert settings.browser_headers["X-Extra"] == "1"
        assert settings.browser_headers["Sec-Fetch-Mode"] == "cors"

    @pytest.mark.parametrize("value", ["soon", -1, 0])
    def test_rejects_bad_timeouts(self, value):
        with pytest.raises(ConfigurationError, match="timeout"):
            BackendSettings.from_config({"backend": {"timeout": value}})

    def test_rejects_non_mapping_section(self):
        with pytest.raises(ConfigurationError):
            BackendSettings.from_config({"backend": ["nope"]})


class TestBuildOutboundHeaders:
    """Tests for the shared header decoration routine."""

    def test_adds_browser_identity_and_cookie(self):
        headers = build_outbound_headers(BackendSettings(), "session=xyz")
        for key, value in DEFAULT_BROWSER_HEADERS.items():
            assert headers[key] == value
        assert headers["Cookie"] == "session=xyz"

    def test_extra_headers_are_applied(self):
        headers = build_outbound_headers(
            BackendSettings(), "c", {"Accept": "text/event-stream"}
        )
        assert headers["Accept"] == "text/event-stream"

    def test_does_not_mutate_settings(self):
        settings = BackendSettings()
        build_outbound_headers(settings, "c", {"Accept": "x"})
        assert "Cookie" not in settings.browser_headers
        assert "Accept" not in settings.browser_headers

    def test_log_view_masks_cookie(self):
        headers = build_outbound_headers(BackendSettings(), "secret")
        masked = _safe_headers_for_log(headers)
        assert masked["Cookie"] == "***"
        assert masked["Sec-Fetch-Dest"] == "empty"


class TestFormatHttpxError:
    """Tests for format_httpx_error."""

    def test_includes_request(self):
        request = httpx.Request("POST", "http://b.local/send")
        message = format_httpx_error(httpx.ConnectError("refused", request=request))
        assert message == "ConnectError; refused; request=POST http://b.local/send"

    def test_falls_back_to_url_and_timeout(self):
        message = format_httpx_error(httpx.ReadTimeout("slow"), url="http://b.local", timeout=5)
        assert message == "ReadTimeout; slow; url=http://b.local; timeout=5s"
