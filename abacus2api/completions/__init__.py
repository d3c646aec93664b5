"""OpenAI chat completions on top of the Abacus ChatLLM backend.

- normalizer: folds the OpenAI message history into one backend message
- stream_adapter: turns backend stream events into OpenAI responses
"""

from .normalizer import NormalizedRequest, coerce_messages, normalize_messages
from .stream_adapter import DONE_FRAME, CompletionTranslator, TranslatorState

__all__ = [
    "CompletionTranslator",
    "DONE_FRAME",
    "NormalizedRequest",
    "TranslatorState",
    "coerce_messages",
    "normalize_messages",
]
