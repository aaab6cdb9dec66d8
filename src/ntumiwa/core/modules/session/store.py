import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta

from ntumiwa.core.modules.session.errors import SessionNotFoundError
from ntumiwa.core.modules.session.models import Session
from ntumiwa.utils import now, short_id


class ReadWriteLock:
    """Any number of concurrent readers or a single writer.

    Waiting writers block new readers, so a steady stream of reads cannot
    starve the sweeper.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._condition:
            while self._writing or self._writers_waiting:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._condition:
            self._writers_waiting += 1
            while self._writing or self._readers:
                self._condition.wait()
            self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._condition:
                self._writing = False
                self._condition.notify_all()


class SessionStore:
    """In-memory session store shared by request handlers and the sweeper.

    Reads share the lock, writes and sweeps hold it exclusively. Sessions are
    returned by reference; a session may be swept right after ``read`` returns
    it, callers treat that like expiry.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._sessions)

    def read(self, session_id: str) -> Session:
        with self._lock.read():
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"could not find session: {short_id(session_id)}")
        return session

    def write(self, session: Session) -> None:
        with self._lock.write():
            self._sessions[session.id] = session

    def destroy(self, session_id: str) -> None:
        with self._lock.write():
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(f"cannot destroy nonexistent session: {short_id(session_id)}")

    def sweep(self, idle_expiration: timedelta, absolute_expiration: timedelta) -> int:
        """Remove expired sessions in one critical section, return how many were removed."""
        current = now()
        with self._lock.write():
            expired = [
                session_id
                for session_id, session in self._sessions.items()
                if current - session.last_activity_at > idle_expiration
                or current - session.created_at > absolute_expiration
            ]
            for session_id in expired:
                del self._sessions[session_id]
        return len(expired)
