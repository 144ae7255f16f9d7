from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import anyio
import numpy as np
from loguru import logger

from chatmem.memory.errors import EmbeddingUnavailableError, InvalidArgumentError
from chatmem.memory.policies import (
    KeepAllSessions,
    LeastRecentlyUsedSessions,
    SessionEvictionPolicy,
)
from chatmem.memory.similarity import format_turns, rank_turns
from chatmem.memory.types import EmbeddingProvider, Role, SessionContext, Turn
from chatmem.utils.env_cfg import MemoryConfig, load_memory_env


def _require_text(value: Any, label: str) -> str:
    """
    Reject missing or empty text arguments.

    Args:
        value (Any): The argument to check.
        label (str): Name used in the error message.

    Returns:
        str: The value, unchanged.

    Raises:
        InvalidArgumentError: If the value is not a non-empty string.
    """
    if not isinstance(value, str) or not value:
        logger.error("InvalidArgumentError: {} cannot be empty.", label)
        raise InvalidArgumentError(f"{label} cannot be empty.")
    return value


def _coerce_role(role: Role | str) -> Role:
    try:
        return Role(role)
    except ValueError:
        logger.error("InvalidArgumentError: Unknown role '{}'.", role)
        raise InvalidArgumentError(
            f"Unknown role '{role}'. Expected 'user' or 'assistant'."
        ) from None


class ConversationMemory:
    """
    Process-wide short-term memory of recent turns, keyed by session id.

    Each session keeps its last ``max_turns`` turns with their embeddings plus a
    small auxiliary mapping. Relevant context for a new message is the top
    ``top_k`` stored turns whose cosine similarity to the message exceeds
    ``similarity_threshold``.
    """

    def __init__(
        self,
        embed: EmbeddingProvider,
        config: MemoryConfig | None = None,
        eviction: SessionEvictionPolicy | None = None,
    ) -> None:
        """
        Initialize the ConversationMemory.

        Args:
            embed (EmbeddingProvider): Async callable returning an embedding for a text.
            config (MemoryConfig | None, optional): Memory limits. Defaults to values from the environment.
            eviction (SessionEvictionPolicy | None, optional): Session eviction policy. Defaults to
                LRU when ``config.max_sessions`` is set, otherwise no eviction.
        """
        self.embed = embed
        self.config = config or load_memory_env()
        if eviction is None:
            eviction = (
                LeastRecentlyUsedSessions(self.config.max_sessions)
                if self.config.max_sessions
                else KeepAllSessions()
            )
        self.eviction = eviction
        self._sessions: dict[str, SessionContext] = {}
        self._locks: dict[str, anyio.Lock] = {}
        self._dimension: int | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def session_ids(self) -> list[str]:
        """Return the ids of all sessions currently held."""
        return list(self._sessions)

    def get_turns(self, session_id: str) -> list[Turn]:
        """
        Return a snapshot of a session's turns, oldest first.

        Args:
            session_id (str): The ID of the session.

        Returns:
            list[Turn]: The stored turns, or an empty list for unknown sessions.
        """
        ctx = self._sessions.get(session_id)
        return list(ctx.turns) if ctx else []

    def get_auxiliary(self, session_id: str) -> dict[str, Any]:
        """
        Return the session's auxiliary facts.

        Args:
            session_id (str): The ID of the session.

        Returns:
            dict[str, Any]: A copy of the auxiliary mapping, empty for unknown sessions.
        """
        ctx = self._sessions.get(session_id)
        return dict(ctx.auxiliary) if ctx else {}

    async def append_turn(
        self,
        session_id: str,
        role: Role | str,
        content: str,
        auxiliary_update: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Embed and store a turn for a session.

        The session is created on its first turn. Nothing is stored, including
        the auxiliary update, unless the embedding succeeds.

        Args:
            session_id (str): The ID of the session.
            role (Role | str): "user" or "assistant".
            content (str): The message text.
            auxiliary_update (Mapping[str, Any] | None, optional): Fields merged into the
                session's auxiliary mapping. Defaults to None.

        Raises:
            InvalidArgumentError: If an argument is empty or the role is unknown.
            EmbeddingUnavailableError: If the content could not be embedded.
        """
        _require_text(session_id, "Session id")
        _require_text(content, "Content")
        turn_role = _coerce_role(role)
        if auxiliary_update is not None and not isinstance(auxiliary_update, Mapping):
            logger.error("InvalidArgumentError: Auxiliary update must be a mapping.")
            raise InvalidArgumentError("Auxiliary update must be a mapping.")

        embedding = await self._embed(content)

        async with self._lock_for(session_id):
            ctx = self._sessions.get(session_id)
            if ctx is None:
                ctx = self._create_session(session_id)
            ctx.merge_auxiliary(auxiliary_update)
            evicted = ctx.append(
                Turn(role=turn_role, content=content, embedding=embedding),
                self.config.max_turns,
            )
            if evicted:
                logger.debug(
                    "Trimmed {} turn(s) from session '{}'", evicted, session_id
                )

        self._touch(session_id)

    async def record_exchange(
        self,
        session_id: str,
        user_message: str,
        assistant_message: str,
        auxiliary_update: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Store a user message and the assistant's reply, in that order.

        The auxiliary update travels with the user turn. If the reply cannot be
        embedded, the user turn stays stored and the error propagates.

        Args:
            session_id (str): The ID of the session.
            user_message (str): The user's message.
            assistant_message (str): The assistant's reply.
            auxiliary_update (Mapping[str, Any] | None, optional): Session facts stated by the user.
        """
        await self.append_turn(session_id, Role.USER, user_message, auxiliary_update)
        await self.append_turn(session_id, Role.ASSISTANT, assistant_message)

    async def get_relevant_context(self, session_id: str, message: str) -> str:
        """
        Return stored turns relevant to a new message.

        Args:
            session_id (str): The ID of the session.
            message (str): The incoming message.

        Returns:
            str: Relevant turns as ``"<role>: <content>"`` lines, most similar first.
                Empty if the session has no turns or none pass the threshold.

        Raises:
            InvalidArgumentError: If the message is empty.
            EmbeddingUnavailableError: If the message could not be embedded.
        """
        _require_text(message, "Message")

        ctx = self._sessions.get(session_id)
        if ctx is None or not ctx.turns:
            return ""

        query = await self._embed(message)

        turns = self.get_turns(session_id)
        ranked = rank_turns(
            query,
            turns,
            threshold=self.config.similarity_threshold,
            limit=self.config.top_k,
        )
        logger.debug(
            "Session '{}': {} of {} turn(s) relevant",
            session_id,
            len(ranked),
            len(turns),
        )
        if session_id in self._sessions:
            self._touch(session_id)
        return format_turns(ranked)

    async def get_relevant_context_or_empty(self, session_id: str, message: str) -> str:
        """
        Like ``get_relevant_context``, but fall back to no memory when embedding fails.

        Args:
            session_id (str): The ID of the session.
            message (str): The incoming message.

        Returns:
            str: Relevant context, or an empty string if it could not be computed.
        """
        try:
            return await self.get_relevant_context(session_id, message)
        except EmbeddingUnavailableError as e:
            logger.warning(
                "Continuing without memory for session '{}': {}", session_id, e
            )
            return ""

    async def _embed(self, text: str) -> tuple[float, ...]:
        """
        Call the embedding provider and validate its result.

        Args:
            text (str): The text to embed.

        Returns:
            tuple[float, ...]: The embedding.

        Raises:
            EmbeddingUnavailableError: If the provider fails or returns a malformed vector.
        """
        try:
            raw = await self.embed(text)
        except EmbeddingUnavailableError:
            raise
        except Exception as e:
            logger.error("EmbeddingUnavailableError: Embedding provider failed: {}", e)
            raise EmbeddingUnavailableError(f"Embedding provider failed: {e}") from e
        return self._validate_embedding(raw)

    def _validate_embedding(self, raw: Any) -> tuple[float, ...]:
        """
        Check that an embedding is a flat, finite, numeric vector of the store's dimension.

        Args:
            raw (Any): The provider's result.

        Returns:
            tuple[float, ...]: The embedding as floats.

        Raises:
            EmbeddingUnavailableError: If the embedding is malformed.
        """
        problem: str | None = None
        vec = None
        if raw is None or isinstance(raw, (str, bytes)):
            problem = f"expected a vector, got {type(raw).__name__}"
        else:
            try:
                vec = np.asarray(raw)
            except (TypeError, ValueError) as e:
                problem = f"not convertible to a vector ({e})"

        if vec is not None:
            if vec.ndim != 1 or vec.size == 0:
                problem = f"expected a non-empty flat vector, got shape {vec.shape}"
            elif vec.dtype.kind not in "iuf":
                problem = f"expected numbers, got dtype {vec.dtype}"
            elif not np.all(np.isfinite(vec)):
                problem = "vector contains NaN or infinite values"
            elif self._dimension is not None and vec.size != self._dimension:
                problem = f"expected dimension {self._dimension}, got {vec.size}"

        if problem or vec is None:
            logger.error("EmbeddingUnavailableError: Malformed embedding: {}", problem)
            raise EmbeddingUnavailableError(f"Malformed embedding: {problem}")

        if self._dimension is None:
            self._dimension = int(vec.size)
            logger.debug("Embedding dimension set to {}", self._dimension)
        return tuple(float(x) for x in vec.tolist())

    def _lock_for(self, session_id: str) -> anyio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = anyio.Lock()
        return lock

    def _create_session(self, session_id: str) -> SessionContext:
        ctx = self._sessions[session_id] = SessionContext(session_id=session_id)
        count = len(self._sessions)
        logger.debug("Created session '{}' ({} total)", session_id, count)

        warn_every = self.config.session_warn_threshold
        if (
            isinstance(self.eviction, KeepAllSessions)
            and warn_every > 0
            and count % warn_every == 0
        ):
            logger.warning(
                "Conversation memory holds {} sessions and never evicts them; "
                "set MEMORY_MAX_SESSIONS to bound it.",
                count,
            )
        return ctx

    def _touch(self, session_id: str) -> None:
        self.eviction.touch(session_id)
        for stale in self.eviction.select_evictions(list(self._sessions)):
            self._sessions.pop(stale, None)
            self.eviction.forget(stale)
            lock = self._locks.get(stale)
            if lock is not None and not lock.locked():
                del self._locks[stale]
            logger.info("Evicted session '{}'", stale)


_default_memory: ConversationMemory | None = None


def get_default_memory() -> ConversationMemory:
    """
    Return the process-wide memory store, creating it on first use.

    The default store embeds through the OpenAI-compatible endpoint configured
    in the environment.

    Returns:
        ConversationMemory: The shared store.
    """
    global _default_memory
    if _default_memory is None:
        from chatmem.utils.openai_cfg import OpenAIEmbeddingProvider

        _default_memory = ConversationMemory(embed=OpenAIEmbeddingProvider())
    return _default_memory
