"""Error types raised by the conversation memory store."""


class ChatMemoryError(Exception):
    """Base class for memory store errors."""


class InvalidArgumentError(ChatMemoryError, ValueError):
    """
    Raised for an empty session id, empty content or message, or an unknown role.
    Nothing is mutated when this is raised.
    """


class EmbeddingUnavailableError(ChatMemoryError, RuntimeError):
    """
    Raised when the embedding provider fails or returns a malformed vector.

    Callers decide whether to retry or continue without memory; the store never
    turns this into an empty result.
    """
