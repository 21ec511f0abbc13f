"""
Exam Cell Question Bank - Builder Sessions
In-memory store of editing sessions with TTL and LRU eviction.
"""
import logging
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional, Tuple

from config.settings import get_settings
from src.question_bank.builder import QuestionBankBuilder
from src.question_bank.uploads import BlockImageUploader, ImageHost

logger = logging.getLogger(__name__)


@dataclass
class BuilderSession:
    """One user's question bank editing session: a builder and its uploads."""
    id: str
    owner: str
    builder: QuestionBankBuilder
    uploader: BlockImageUploader
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def close(self) -> None:
        self.builder.close()
        cancelled = self.uploader.close()
        if cancelled:
            logger.info(f"Session {self.id} closed with {cancelled} upload(s) cancelled")


class SessionStore:
    """
    Thread-safe session store with TTL and LRU eviction.

    Every session leaving the store (discard, expiry, eviction) is closed,
    so late upload completions never reach a discarded tree.
    """

    def __init__(self, ttl_seconds: int = 14400, max_size: int = 500):
        self._sessions: "OrderedDict[str, Tuple[BuilderSession, float]]" = OrderedDict()
        self._lock = threading.RLock()
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._evictions = 0

    def create(self, owner: str, host: ImageHost) -> BuilderSession:
        builder = QuestionBankBuilder()
        session = BuilderSession(
            id=str(uuid.uuid4()),
            owner=owner,
            builder=builder,
            uploader=BlockImageUploader(builder, host),
        )
        with self._lock:
            self._evict_expired()
            while len(self._sessions) >= self._max_size:
                self._evict_one()
            self._sessions[session.id] = (session, time.time() + self._ttl)
        logger.info(f"Session {session.id} opened for {owner}")
        return session

    def get(self, session_id: str) -> Optional[BuilderSession]:
        """Return a live session and refresh its TTL; expired sessions are closed."""
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            session, expiry = entry
            if time.time() >= expiry:
                del self._sessions[session_id]
                session.close()
                return None
            self._sessions.move_to_end(session_id)
            self._sessions[session_id] = (session, time.time() + self._ttl)
            return session

    def discard(self, session_id: str) -> bool:
        with self._lock:
            entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        entry[0].close()
        logger.info(f"Session {session_id} discarded")
        return True

    def clear(self) -> None:
        with self._lock:
            sessions = [session for session, _ in self._sessions.values()]
            self._sessions.clear()
        for session in sessions:
            session.close()

    def _evict_one(self) -> None:
        """Evict the least recently used session."""
        if self._sessions:
            session_id, (session, _) = self._sessions.popitem(last=False)
            self._evictions += 1
            session.close()
            logger.info(f"Session {session_id} evicted")

    def _evict_expired(self) -> int:
        now = time.time()
        expired = [key for key, (_, expiry) in self._sessions.items() if now >= expiry]
        for key in expired:
            session, _ = self._sessions.pop(key)
            session.close()
        return len(expired)

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._sessions),
                "max_size": self._max_size,
                "ttl_seconds": self._ttl,
                "evictions": self._evictions,
            }

    def __len__(self) -> int:
        return len(self._sessions)


@lru_cache()
def get_session_store() -> SessionStore:
    """Process-wide session store (FastAPI dependency)."""
    settings = get_settings()
    return SessionStore(ttl_seconds=settings.session_ttl_seconds, max_size=settings.session_max_count)
