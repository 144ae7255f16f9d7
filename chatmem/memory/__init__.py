"""Short-term conversation memory.

Keeps the most recent turns of each session with their embeddings and returns
the ones most similar to a new message.
"""

from chatmem.memory.errors import (
    ChatMemoryError,
    EmbeddingUnavailableError,
    InvalidArgumentError,
)
from chatmem.memory.types import EmbeddingProvider, Role, SessionContext, Turn
from chatmem.memory.policies import (
    KeepAllSessions,
    LeastRecentlyUsedSessions,
    SessionEvictionPolicy,
)
from chatmem.memory.similarity import cosine_similarity, format_turns, rank_turns
from chatmem.memory.store import ConversationMemory, get_default_memory

__all__ = [
    "ChatMemoryError",
    "ConversationMemory",
    "EmbeddingProvider",
    "EmbeddingUnavailableError",
    "InvalidArgumentError",
    "KeepAllSessions",
    "LeastRecentlyUsedSessions",
    "Role",
    "SessionContext",
    "SessionEvictionPolicy",
    "Turn",
    "cosine_similarity",
    "format_turns",
    "get_default_memory",
    "rank_turns",
]
