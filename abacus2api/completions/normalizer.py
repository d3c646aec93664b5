"""Collapse an OpenAI chat history into the single message Abacus accepts.

The backend takes one message per conversation, so earlier turns are folded
into a text preamble::

    Previous conversation:
    user: hi
    assistant: hello

    Current message: System: be brief

    what is 2+2?
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..core.exceptions import InvalidRequestError
from ..types import ChatMessage


@dataclass(frozen=True)
class NormalizedRequest:
    primary_text: str = ""
    system_preamble: str = ""
    history_preamble: str = ""

    @property
    def composed_text(self) -> str:
        """Message body sent to the backend.

        The system prefix is applied first and the history wrapper last, so
        when both are present the history encloses the system-prefixed text.
        """
        text = self.primary_text
        if self.system_preamble:
            text = f"System: {self.system_preamble}\n\n{text}"
        if self.history_preamble:
            text = (
                f"Previous conversation:\n{self.history_preamble}\n"
                f"Current message: {text}"
            )
        return text


def message_text(content: Any) -> str:
    """Return the text of a message's content field."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, Mapping) and part.get("type") == "text":
                text = part.get("text")
                if isinstance(text, str):
                    parts.append(text)
            elif isinstance(part, str):
                parts.append(part)
        return "".join(parts)
    return str(content)


def coerce_messages(raw: Any) -> list[ChatMessage]:
    """Validate the ``messages`` field of an inbound request.

    A missing field is an empty history; anything other than a list of
    objects is rejected.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidRequestError("messages must be an array", code="invalid_messages")

    messages: list[ChatMessage] = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise InvalidRequestError(
                f"messages[{index}] must be an object", code="invalid_messages"
            )
        role = item.get("role")
        messages.append(
            {
                "role": role if isinstance(role, str) else "",
                "content": message_text(item.get("content")),
            }
        )
    return messages


def normalize_messages(messages: Sequence[Mapping[str, Any]]) -> NormalizedRequest:
    """Split a chat history into the final message plus preambles.

    Roles are not validated. Among earlier messages, a repeated system
    message overwrites the previous one.
    """
    if not messages:
        return NormalizedRequest()

    *earlier, last = messages
    system_preamble = ""
    history_lines: list[str] = []
    for message in earlier:
        role = message.get("role", "")
        content = message_text(message.get("content"))
        if role == "system":
            system_preamble = content
        else:
            history_lines.append(f"{role}: {content}\n")

    return NormalizedRequest(
        primary_text=message_text(last.get("content")),
        system_preamble=system_preamble,
        history_preamble="".join(history_lines),
    )
