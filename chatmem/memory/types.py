"""Shared types for the conversation memory store."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol


class Role(str, Enum):
    """Speaker of a turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """Represents a single user or assistant message."""

    role: Role
    content: str
    embedding: tuple[float, ...] | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def format(self) -> str:
        """Render the turn as ``"<role>: <content>"``."""
        return f"{self.role.value}: {self.content}"


@dataclass
class SessionContext:
    """
    Per-session turn log plus free-form auxiliary facts (e.g. locations).
    """

    session_id: str
    turns: list[Turn] = field(default_factory=list)
    auxiliary: dict[str, Any] = field(default_factory=dict)

    def merge_auxiliary(self, update: Mapping[str, Any] | None) -> None:
        """
        Merge new auxiliary fields, keeping keys the update does not mention.

        Args:
            update (Mapping[str, Any] | None): Fields to set. None is a no-op.
        """
        if update:
            self.auxiliary.update(update)

    def append(self, turn: Turn, max_turns: int) -> int:
        """
        Append a turn and drop the oldest ones beyond ``max_turns``.

        Args:
            turn (Turn): The turn to append.
            max_turns (int): Maximum number of turns to keep.

        Returns:
            int: The number of turns evicted.
        """
        self.turns.append(turn)
        overflow = len(self.turns) - max_turns
        if overflow > 0:
            del self.turns[:overflow]
            return overflow
        return 0


class EmbeddingProvider(Protocol):
    """Interface for computing text embeddings."""

    async def __call__(
        self, text: str
    ) -> Sequence[float]:  # pragma: no cover - interface
        """Return a fixed-length vector for the text."""
        ...
