"""Session lifecycle: resolve, validate, persist, migrate and sweep sessions."""

import asyncio
import contextlib
import http.cookies
from datetime import timedelta
from email.utils import format_datetime

import structlog
from structlog.typing import FilteringBoundLogger

from ntumiwa.config import MIN_SECRET_KEY_BYTES, Config
from ntumiwa.core.modules.session import cookies
from ntumiwa.core.modules.session.errors import CookieError, SessionNotFoundError, SessionRetiredError
from ntumiwa.core.modules.session.models import CSRF_TOKEN, Session, generate_csrf_token
from ntumiwa.core.modules.session.store import SessionStore
from ntumiwa.utils import now, short_id

logger: FilteringBoundLogger = structlog.get_logger(__name__)


class SessionManager:
    """Orchestrates the session store and the signed cookie codec.

    Resolving a session never fails: a missing, forged or expired cookie
    degrades to a freshly minted anonymous session.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        secret_key: bytes,
        cookie_name: str,
        idle_expiration: timedelta,
        absolute_expiration: timedelta,
        gc_interval: timedelta,
        domain: str | None = None,
        secure: bool = True,
    ) -> None:
        if len(secret_key) < MIN_SECRET_KEY_BYTES:
            raise ValueError(f"secret key must be at least {MIN_SECRET_KEY_BYTES} bytes")
        if not cookie_name:
            raise ValueError("cookie name must not be empty")

        self._store = store
        self._secret_key = secret_key
        self._cookie_name = cookie_name
        self._idle_expiration = idle_expiration
        self._absolute_expiration = absolute_expiration
        self._gc_interval = gc_interval
        self._domain = domain
        self._secure = secure
        self._sweeper: asyncio.Task[None] | None = None

    @classmethod
    def from_config(cls, config: Config, store: SessionStore | None = None) -> "SessionManager":
        return cls(
            store if store is not None else SessionStore(),
            secret_key=config.secret_key,
            cookie_name=config.session_cookie_name,
            idle_expiration=config.session_idle_expiration,
            absolute_expiration=config.session_absolute_expiration,
            gc_interval=config.session_gc_interval,
            domain=config.session_cookie_domain,
            secure=config.cookie_secure,
        )

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def cookie_name(self) -> str:
        return self._cookie_name

    def start(self, cookie_value: str | None, log: FilteringBoundLogger = logger) -> Session:
        """Resolve the session referenced by a request cookie, minting a new one when needed."""
        session: Session | None = None
        reason = "no session cookie"

        if cookie_value:
            try:
                session_id = cookies.read_signed(self._cookie_name, cookie_value, self._secret_key)
                session = self._store.read(session_id)
            except CookieError as e:
                reason = str(e)
            except SessionNotFoundError:
                reason = "session not found in store"

        if session is not None:
            if self.validate(session, log):
                return session
            reason = "session expired"

        session = Session()
        log.debug("session_created", reason=reason, session=short_id(session.id))
        return session

    def validate(self, session: Session, log: FilteringBoundLogger = logger) -> bool:
        """Check idle and absolute expiration, destroying the session when it fails."""
        current = now()
        if (
            current - session.created_at <= self._absolute_expiration
            and current - session.last_activity_at <= self._idle_expiration
        ):
            return True

        try:
            self._store.destroy(session.id)
        except SessionNotFoundError:
            # Swept concurrently; the session is expired either way.
            log.debug("expired_session_already_removed", session=short_id(session.id))
        return False

    def save(self, session: Session) -> None:
        if session.retired:
            raise SessionRetiredError(f"session {short_id(session.id)} was migrated and cannot be saved")
        session.last_activity_at = now()
        self._store.write(session)

    def rotate(self, session: Session) -> Session:
        """Copy the session under a fresh id and CSRF token, retiring the original object.

        Concurrent requests still holding the original see neither the new id
        nor any change made to the copy.
        """
        rotated = Session(
            data=dict(session.data),
            created_at=session.created_at,
            last_activity_at=session.last_activity_at,
        )
        rotated.put(CSRF_TOKEN, generate_csrf_token())
        session.retired = True
        return rotated

    def migrate(self, session: Session, log: FilteringBoundLogger = logger) -> Session:
        """Invalidate the session's current id and return its replacement.

        Used at privilege changes so that a pre-login session id cannot be
        ridden into an authenticated session. The caller continues with the
        returned session and persists it through ``save``. Raises
        SessionNotFoundError when the old id is no longer in the store.
        """
        self._store.destroy(session.id)
        rotated = self.rotate(session)
        log.debug("session_migrated", old=short_id(session.id), new=short_id(rotated.id))
        return rotated

    def destroy(self, session: Session) -> None:
        with contextlib.suppress(SessionNotFoundError):
            self._store.destroy(session.id)

    def cookie_header(self, session: Session) -> str:
        """Serialized ``Set-Cookie`` value carrying the signed session id."""
        value = cookies.write_signed(self._cookie_name, session.id, self._secret_key)

        cookie: http.cookies.SimpleCookie = http.cookies.SimpleCookie()
        cookie[self._cookie_name] = value
        morsel = cookie[self._cookie_name]
        morsel["max-age"] = int(self._idle_expiration.total_seconds())
        morsel["expires"] = format_datetime(now() + self._idle_expiration, usegmt=True)
        morsel["path"] = "/"
        if self._domain:
            morsel["domain"] = self._domain
        morsel["httponly"] = True
        morsel["samesite"] = "lax"
        if self._secure:
            morsel["secure"] = True
        return cookie.output(header="").strip()

    def sweep(self) -> int:
        """Remove expired sessions from the store. Errors are logged, never raised."""
        try:
            removed = self._store.sweep(self._idle_expiration, self._absolute_expiration)
        except Exception:
            logger.exception("session_sweep_failed")
            return 0
        logger.debug("session_sweep_completed", removed=removed, remaining=len(self._store))
        return removed

    def start_sweeper(self) -> None:
        """Spawn the periodic sweep task on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._run_sweeper(), name="session-sweeper")

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None

    async def _run_sweeper(self) -> None:
        interval = self._gc_interval.total_seconds()
        while True:
            await asyncio.sleep(interval)
            self.sweep()
