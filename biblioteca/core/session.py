"""Per-user library session state.

A ``LibrarySession`` holds what one signed-in user is working with: the
current file listing, the summary history and the last generated summary.
Sessions are opened on sign-in and discarded on sign-out or after idling.
"""

import logging
import time
from dataclasses import dataclass, field

from biblioteca.core.config import settings
from biblioteca.schemas.library import StoredFile
from biblioteca.schemas.summary import ConversationEntry

logger = logging.getLogger(__name__)


@dataclass
class LibrarySession:
    user_id: str
    email: str | None = None
    access_token: str = ""
    files: list[StoredFile] = field(default_factory=list)
    files_loaded: bool = False
    history: list[ConversationEntry] = field(default_factory=list)
    history_loaded: bool = False
    summary: str | None = None
    summary_in_flight: bool = False
    last_seen: float = field(default_factory=time.monotonic)

    @property
    def file_names(self) -> list[str]:
        return [file.name for file in self.files]


class SessionRegistry:
    """Process-local registry of open sessions, keyed by user id.

    Sessions idle for longer than ``idle_timeout`` seconds are evicted the
    next time any session is opened. A session with a summary in flight is
    never evicted.
    """

    def __init__(self, idle_timeout: float | None = None, clock=time.monotonic):
        self._sessions: dict[str, LibrarySession] = {}
        self.idle_timeout = idle_timeout
        self._clock = clock

    def open(self, user_id: str, access_token: str, email: str | None = None) -> LibrarySession:
        """Return the user's session, creating it on first use.

        A known session gets the latest access token so storage calls keep
        working after a token refresh.
        """
        now = self._clock()
        self.evict_idle(now)

        session = self._sessions.get(user_id)
        if session is None:
            session = LibrarySession(user_id=user_id, email=email, access_token=access_token)
            self._sessions[user_id] = session
            logger.info(f"Opened library session for user {user_id}")
        else:
            session.access_token = access_token
            if email:
                session.email = email
        session.last_seen = now
        return session

    def get(self, user_id: str) -> LibrarySession | None:
        return self._sessions.get(user_id)

    def evict_idle(self, now: float | None = None) -> list[str]:
        """Drop sessions not seen within the idle timeout; return their user ids."""
        if not self.idle_timeout or self.idle_timeout <= 0:
            return []
        if now is None:
            now = self._clock()

        expired = [
            user_id
            for user_id, session in self._sessions.items()
            if not session.summary_in_flight and now - session.last_seen > self.idle_timeout
        ]
        for user_id in expired:
            del self._sessions[user_id]
        if expired:
            logger.info(f"Evicted {len(expired)} idle library session(s)")
        return expired

    def close(self, user_id: str) -> None:
        if self._sessions.pop(user_id, None) is not None:
            logger.info(f"Closed library session for user {user_id}")

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


sessions = SessionRegistry(idle_timeout=settings.session_idle_timeout)
