"""Types for the two wire formats the proxy translates between.

- OpenAI-compatible types: inbound requests and the chat completion
  responses (streaming and non-streaming) we send back.
- Abacus types: the conversation bootstrap exchange and the per-line records
  of the ChatLLM send-message stream.
"""

from typing import Any
from typing_extensions import TypedDict


# =============================================================================
# OpenAI-Compatible Types
# =============================================================================


class ChatMessage(TypedDict, total=False):
    """A message in a chat conversation (OpenAI format).

    Attributes:
        role: Role of the sender ("system", "user", "assistant", or any
            other string, which is passed through untouched).
        content: Text of the message. Lists of content parts are accepted on
            input and flattened to their text.
    """
    role: str
    content: str | list[dict[str, Any]] | None


class ChatCompletionRequest(TypedDict, total=False):
    """Inbound body of POST /v1/chat/completions."""
    messages: list[ChatMessage]
    model: str
    stream: bool


class Delta(TypedDict, total=False):
    """Incremental content of a streamed choice."""
    content: str


class ChunkChoice(TypedDict, total=False):
    """A choice in a streamed chunk. finish_reason is omitted until the end."""
    delta: Delta
    index: int
    finish_reason: str


class ChatCompletionChunk(TypedDict):
    """One ``data:`` frame of a streaming chat completion."""
    id: str
    object: str
    created: int
    model: str
    choices: list[ChunkChoice]


class AssistantMessage(TypedDict):
    role: str
    content: str


class Choice(TypedDict):
    """A choice in a non-streaming chat completion."""
    message: AssistantMessage
    finish_reason: str


class ChatCompletionResponse(TypedDict):
    """Complete (non-streaming) chat completion."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]


# =============================================================================
# Abacus Types
# =============================================================================


class CreateConversationRequest(TypedDict):
    deploymentId: str
    name: str
    externalApplicationId: str


class ConversationResult(TypedDict, total=False):
    deploymentConversationId: str
    externalApplicationId: str


class CreateConversationResponse(TypedDict, total=False):
    success: bool
    result: ConversationResult


class ChatConfig(TypedDict):
    timezone: str
    language: str


class SendMessageRequest(TypedDict):
    """Body of the ChatLLM send-message call."""
    requestId: str
    deploymentConversationId: str
    message: str
    isDesktop: bool
    chatConfig: ChatConfig
    llmName: str
    externalApplicationId: str


class AbacusStreamRecord(TypedDict, total=False):
    """One JSON line of the send-message stream.

    Only ``type``, ``title``, ``segment`` and ``end`` drive translation; the
    rest are carried for logging.

    Attributes:
        type: Record kind; "text" records carry answer text in ``segment``.
        title: Display title. "Thinking..." marks a placeholder record.
        segment: Text fragment for "text" records.
        end: True on the record that closes the answer.
        success: Backend success flag on the closing record.
        messageId: Backend message id.
        token: Optional token field.
    """
    type: str
    temp: bool
    isSpinny: bool
    segment: str
    title: str
    isGeneratingImage: bool
    messageId: str
    counter: int
    message_id: str
    token: str | None
    end: bool
    success: bool
