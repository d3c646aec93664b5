"""Type definitions for the proxy."""

from .chat import (
    AbacusStreamRecord,
    AssistantMessage,
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatConfig,
    ChatMessage,
    Choice,
    ChunkChoice,
    ConversationResult,
    CreateConversationRequest,
    CreateConversationResponse,
    Delta,
    SendMessageRequest,
)

__all__ = [
    "AbacusStreamRecord",
    "AssistantMessage",
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatConfig",
    "ChatMessage",
    "Choice",
    "ChunkChoice",
    "ConversationResult",
    "CreateConversationRequest",
    "CreateConversationResponse",
    "Delta",
    "SendMessageRequest",
]
