"""Abacus2Api - OpenAI-compatible proxy for the Abacus ChatLLM backend

Exposes POST /v1/chat/completions and forwards each request to Abacus,
translating the OpenAI chat history into a single backend message and the
backend's line-delimited JSON stream back into OpenAI chunks or a complete
chat.completion.

This module provides:
- AbacusClient: conversation bootstrap and send-message calls
- CompletionTranslator: backend events -> OpenAI stream / completion
- normalize_messages: OpenAI history -> single backend message

Example:
    >>> from abacus2api.main import app
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from .completions import CompletionTranslator, NormalizedRequest, normalize_messages
from .config_loader import load_config
from .core import AbacusClient, BackendSettings, UpstreamUnavailableError
from .logging import logger, setup_logging

__all__ = [
    "AbacusClient",
    "BackendSettings",
    "CompletionTranslator",
    "load_config",
    "logger",
    "NormalizedRequest",
    "normalize_messages",
    "setup_logging",
    "UpstreamUnavailableError",
]
