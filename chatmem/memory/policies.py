"""Session eviction policies."""

from collections import OrderedDict
from collections.abc import Iterable
from typing import Protocol


class SessionEvictionPolicy(Protocol):
    """Interface deciding which whole sessions the store drops."""

    def touch(self, session_id: str) -> None:  # pragma: no cover - interface
        """Record that a session was used."""
        ...

    def forget(self, session_id: str) -> None:  # pragma: no cover - interface
        """Stop tracking a session that was removed."""
        ...

    def select_evictions(
        self, session_ids: Iterable[str]
    ) -> list[str]:  # pragma: no cover - interface
        """Return the sessions to drop from the given live sessions."""
        ...


class KeepAllSessions:
    """
    Never evicts a session. Memory grows with the number of sessions seen.
    """

    def touch(self, session_id: str) -> None:
        _ = session_id

    def forget(self, session_id: str) -> None:
        _ = session_id

    def select_evictions(self, session_ids: Iterable[str]) -> list[str]:
        _ = session_ids
        return []


class LeastRecentlyUsedSessions:
    """
    Keeps at most ``max_sessions`` sessions, dropping the least recently used.
    """

    def __init__(self, max_sessions: int) -> None:
        """
        Initialize the LeastRecentlyUsedSessions policy.

        Args:
            max_sessions (int): Maximum number of sessions to keep.

        Raises:
            ValueError: If max_sessions is less than 1.
        """
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1.")
        self.max_sessions = max_sessions
        self._order: OrderedDict[str, None] = OrderedDict()

    def touch(self, session_id: str) -> None:
        self._order[session_id] = None
        self._order.move_to_end(session_id)

    def forget(self, session_id: str) -> None:
        self._order.pop(session_id, None)

    def select_evictions(self, session_ids: Iterable[str]) -> list[str]:
        """
        Pick the least recently used sessions beyond the cap.

        Args:
            session_ids (Iterable[str]): Sessions currently held by the store.

        Returns:
            list[str]: Sessions to evict, oldest first.
        """
        live = set(session_ids)
        for stale in [sid for sid in self._order if sid not in live]:
            del self._order[stale]

        overflow = len(live) - self.max_sessions
        if overflow <= 0:
            return []
        # Sessions the store holds but never touched are the oldest.
        untracked = [sid for sid in live if sid not in self._order]
        candidates = sorted(untracked) + list(self._order)
        return candidates[:overflow]
