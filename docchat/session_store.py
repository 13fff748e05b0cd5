"""In-memory conversation history keyed by session id."""

import asyncio
from collections import defaultdict

from .config import config
from .models import Role, Turn

logger = config.get_logger(__name__)


class SessionStore:
    """Keyed, in-memory turn log with one lock per session.

    Callers that read and then write a session's history hold
    ``lock(session_id)`` for the whole sequence, so requests for the same
    session are linearized while other sessions proceed independently.
    """

    def __init__(self, max_turns: int | None = None) -> None:
        """Initialize an empty store.

        Args:
            max_turns: Sliding window size per session. Oldest turns are dropped
                in user/model pairs once exceeded. None or 0 keeps everything.
        """
        self.max_turns = max_turns or None
        self._sessions: dict[str, list[Turn]] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def lock(self, session_id: str) -> asyncio.Lock:
        return self._locks[session_id]

    def get(self, session_id: str) -> list[Turn]:
        """Return a copy of the session's turns, empty for an unknown session."""
        return list(self._sessions.get(session_id, ()))

    def append(self, session_id: str, turn: Turn) -> None:
        self.extend(session_id, [turn])

    def extend(self, session_id: str, turns: list[Turn]) -> None:
        """Commit several turns at once, creating the session on first use."""
        history = self._sessions.setdefault(session_id, [])
        history.extend(turns)
        self._trim(session_id, history)

    def clear(self, session_id: str) -> None:
        """Forget a session's turns, and its lock unless a request holds it."""
        self._sessions.pop(session_id, None)
        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._locks[session_id]

    def _trim(self, session_id: str, history: list[Turn]) -> None:
        if self.max_turns is None or len(history) <= self.max_turns:
            return
        drop = len(history) - self.max_turns
        # Keep the window starting on a user turn.
        while drop < len(history) and history[drop].role is not Role.USER:
            drop += 1
        del history[:drop]
        logger.debug("Trimmed %d turns from session %s", drop, session_id)
