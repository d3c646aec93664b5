"""API module for the proxy."""

from .routes import CHAT_COMPLETIONS_PATH, chat_completions, register_routes, service_status

__all__ = [
    "CHAT_COMPLETIONS_PATH",
    "chat_completions",
    "register_routes",
    "service_status",
]
