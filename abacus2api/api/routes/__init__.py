"""API routes for the proxy."""

from fastapi import FastAPI

from .chat import CHAT_COMPLETIONS_PATH, chat_completions
from .status import service_status

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def register_routes(app: FastAPI) -> None:
    """Attach the chat endpoint and the catch-all status route to ``app``."""
    # Registered for every method so that e.g. GET gets a 405, not the status page
    app.api_route(CHAT_COMPLETIONS_PATH, methods=ALL_METHODS)(chat_completions)
    app.api_route("/{full_path:path}", methods=ALL_METHODS)(service_status)


__all__ = [
    "ALL_METHODS",
    "CHAT_COMPLETIONS_PATH",
    "chat_completions",
    "register_routes",
    "service_status",
]
