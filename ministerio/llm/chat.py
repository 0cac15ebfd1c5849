from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Protocol, Sequence

from ministerio.core.errors import AIServiceError
from ministerio.llm import prompts
from ministerio.llm.gemini_text import GenerationResult, GroundingSource


logger = logging.getLogger(__name__)

Role = Literal["user", "assistant"]

# Gemini calls the assistant side "model".
_WIRE_ROLE = {"user": "user", "assistant": "model"}


@dataclass(frozen=True, slots=True)
class ChatMessage:
    id: str
    role: Role
    text: str
    grounding: list[GroundingSource] = field(default_factory=list)
    is_error: bool = False


class ChatBackend(Protocol):
    def send_chat_message(
        self, history: Sequence[Mapping[str, Any]], message: str
    ) -> GenerationResult: ...


class ChatTranscript:
    """Append-only conversation kept in memory for one chat run."""

    def __init__(self, backend: ChatBackend, *, welcome: str | None = prompts.CHAT_WELCOME):
        self._backend = backend
        self._ids = itertools.count(1)
        self._messages: list[ChatMessage] = []
        if welcome:
            self._messages.append(ChatMessage(id="welcome", role="assistant", text=welcome))

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def _append(self, **kwargs: Any) -> ChatMessage:
        msg = ChatMessage(id=str(next(self._ids)), **kwargs)
        self._messages.append(msg)
        return msg

    def wire_history(self) -> list[dict[str, Any]]:
        """Prior turns in request form.

        The local welcome greeting and error placeholders were never produced
        by the model, so they are left out.
        """

        return [
            {"role": _WIRE_ROLE[m.role], "parts": [{"text": m.text}]}
            for m in self._messages
            if m.id != "welcome" and not m.is_error
        ]

    def send(self, text: str) -> ChatMessage | None:
        """Send one user message and append the reply.

        Blank input is ignored. A failed request appends an error reply
        instead of raising.
        """

        if not text.strip():
            return None

        history = self.wire_history()
        self._append(role="user", text=text)
        try:
            result = self._backend.send_chat_message(history, text)
        except AIServiceError as e:
            logger.warning("chat_send_failed", extra={"error": str(e)})
            return self._append(role="assistant", text=prompts.CHAT_ERROR_REPLY, is_error=True)

        return self._append(role="assistant", text=result.text, grounding=list(result.grounding))
