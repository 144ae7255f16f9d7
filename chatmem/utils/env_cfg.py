import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class MemoryConfig:
    """
    Dataclass for conversation memory configuration.
    """

    max_turns: int = 10
    similarity_threshold: float = 0.7
    top_k: int = 3
    max_sessions: int = 0
    session_warn_threshold: int = 10000


@dataclass(frozen=True)
class ModelConfig:
    """
    Dataclass for model configuration.
    """

    embed_model: str


@dataclass(frozen=True)
class OpenAIConfig:
    """
    Dataclass for OpenAI-compatible API configuration.
    """

    api_key: str | None
    api_base: str | None
    timeout: float
    max_retries: int


@dataclass(frozen=True)
class PathConfig:
    """
    Dataclass for path configuration.
    """

    logs: Path


def load_memory_env() -> MemoryConfig:
    """
    Loads conversation memory configuration from environment variables or defaults.

    Returns:
        MemoryConfig: Dataclass containing memory configuration.
        - max_turns (int): Maximum number of turns retained per session.
        - similarity_threshold (float): Minimum cosine similarity (exclusive) for a turn to be relevant.
        - top_k (int): Maximum number of turns returned as relevant context.
        - max_sessions (int): Maximum number of sessions kept in memory, 0 for unbounded.
        - session_warn_threshold (int): Session count step at which unbounded growth is logged.

    Raises:
        ValueError: If a numeric setting cannot be parsed or is out of range.
    """
    cfg = MemoryConfig(
        max_turns=int(os.getenv("MEMORY_MAX_TURNS", "10")),
        similarity_threshold=float(os.getenv("MEMORY_SIMILARITY_THRESHOLD", "0.7")),
        top_k=int(os.getenv("MEMORY_TOP_K", "3")),
        max_sessions=int(os.getenv("MEMORY_MAX_SESSIONS", "0")),
        session_warn_threshold=int(
            os.getenv("MEMORY_SESSION_WARN_THRESHOLD", "10000")
        ),
    )
    if cfg.max_turns < 1:
        raise ValueError("MEMORY_MAX_TURNS must be at least 1.")
    if cfg.top_k < 1:
        raise ValueError("MEMORY_TOP_K must be at least 1.")
    if cfg.max_sessions < 0:
        raise ValueError("MEMORY_MAX_SESSIONS cannot be negative.")
    return cfg


def load_model_env() -> ModelConfig:
    """
    Loads model configuration from environment variables or defaults.

    Returns:
        ModelConfig: Dataclass containing model configuration.
        - embed_model (str): The embedding model identifier.
    """
    return ModelConfig(
        embed_model=os.getenv("EMBED_MODEL", "text-embedding-3-small"),
    )


def load_openai_env() -> OpenAIConfig:
    """
    Loads OpenAI-compatible API configuration from environment variables or defaults.

    Returns:
        OpenAIConfig: Dataclass containing API configuration.
        - api_key (str | None): The API key, if any.
        - api_base (str | None): Base URL of an OpenAI-compatible server, if any.
        - timeout (float): Request timeout in seconds.
        - max_retries (int): Number of client-side retries.
    """
    return OpenAIConfig(
        api_key=os.getenv("OPENAI_API_KEY"),
        api_base=os.getenv("OPENAI_API_BASE") or None,
        timeout=float(os.getenv("OPENAI_TIMEOUT", "30")),
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
    )


def load_path_env() -> PathConfig:
    """
    Loads path configuration from environment variables or defaults.

    Returns:
        PathConfig: Dataclass containing path configuration.
        - logs (Path): Path to the logs file.
    """
    project_root: Path = Path(__file__).parents[2].resolve()
    return PathConfig(
        logs=Path(
            os.getenv("LOG_PATH", project_root / ".logs" / "chatmem.log")
        ).expanduser(),
    )
