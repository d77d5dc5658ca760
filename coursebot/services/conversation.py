"""
Conversation data passed between the chat route and the AI agent.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Optional, Sequence, Tuple


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str


@dataclass(frozen=True)
class GenerationContext:
    """Courses visible to the user plus the one they have selected, if any."""
    courses: Sequence[Any] = field(default_factory=tuple)
    selected_course: Optional[Any] = None


class ConversationHistory:
    """Most recent turns only; the oldest turn is dropped once the limit is hit."""

    def __init__(self, max_length: int = 10):
        self.max_length = max_length
        self._turns: Deque[ConversationTurn] = deque(maxlen=max_length)

    def record_exchange(self, user_message: str, assistant_reply: str):
        self._turns.append(ConversationTurn(Role.USER, user_message))
        self._turns.append(ConversationTurn(Role.ASSISTANT, assistant_reply))

    def recent(self, limit: int) -> Tuple[ConversationTurn, ...]:
        if limit <= 0:
            return ()
        return tuple(self._turns)[-limit:]

    def clear(self):
        self._turns.clear()

    def snapshot(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)
