"""chatmem: short-term conversational memory with embedding-based recall."""

from loguru import logger

from chatmem.memory import (
    ConversationMemory,
    EmbeddingUnavailableError,
    InvalidArgumentError,
    Role,
    get_default_memory,
)

# Silent until the host opts in through chatmem.utils.logging_cfg.setup_logging.
logger.disable("chatmem")

__all__ = [
    "ConversationMemory",
    "EmbeddingUnavailableError",
    "InvalidArgumentError",
    "Role",
    "get_default_memory",
]
