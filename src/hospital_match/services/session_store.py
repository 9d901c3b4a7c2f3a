"""In-process conversation transcripts with bounded lifetime."""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Literal

from hospital_match.core.logging import get_logger

logger = get_logger(__name__)

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Turn:
    role: Role
    text: str


@dataclass
class Session:
    """Append-only transcript for one session id."""

    session_id: str
    turns: list[Turn] = field(default_factory=list)
    last_access: float = 0.0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.turns

    def append(self, role: Role, text: str) -> None:
        self.turns.append(Turn(role=role, text=text))


class SessionStore:
    """LRU map of sessions with an idle TTL.

    ``open`` holds the session's lock for the duration of the ``async with``
    block, so turns for the same session id are processed one at a time.
    Sessions that are locked are never evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: OrderedDict[str, Session] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @asynccontextmanager
    async def open(self, session_id: str) -> AsyncIterator[Session]:
        session = self._get_or_create(session_id)
        async with session.lock:
            session.last_access = self._clock()
            yield session
            session.last_access = self._clock()

    def transcript(self, session_id: str) -> list[Turn]:
        session = self._sessions.get(session_id)
        return list(session.turns) if session else []

    def _get_or_create(self, session_id: str) -> Session:
        self._evict_expired()
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(session_id=session_id, last_access=self._clock())
            self._sessions[session_id] = session
            self._evict_overflow()
        else:
            self._sessions.move_to_end(session_id)
        return session

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [
            sid
            for sid, s in self._sessions.items()
            if not s.lock.locked() and now - s.last_access > self.ttl_seconds
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug("Evicted %d idle sessions", len(expired))

    def _evict_overflow(self) -> None:
        # Oldest first; the session just created is last and stays.
        for sid in list(self._sessions)[:-1]:
            if len(self._sessions) <= self.max_sessions:
                break
            if self._sessions[sid].lock.locked():
                continue
            del self._sessions[sid]
            logger.debug("Evicted least recently used session %s", sid)
