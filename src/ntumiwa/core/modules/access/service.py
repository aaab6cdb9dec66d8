from pymongo.errors import PyMongoError

from ntumiwa.core.core import Service
from ntumiwa.core.modules.session.context import RequestSession
from ntumiwa.core.modules.session.errors import SessionInvariantError, SessionNotFoundError
from ntumiwa.core.modules.session.models import AUTHENTICATED, USERNAME, Session
from ntumiwa.errors import AccessDeniedError


class AccessService(Service):
    """Authentication guard over request sessions.

    Every change of authentication state migrates the session id, and every
    protected request re-checks that the bound user still exists.
    """

    def is_authenticated(self, session: Session) -> bool:
        value = session.get(AUTHENTICATED)
        if not isinstance(value, bool):
            raise SessionInvariantError("session 'authenticated' value is not a bool")
        return value

    def login(self, ctx: RequestSession, username: str) -> None:
        """Mark the session authenticated. Call only after verifying credentials."""
        self._migrate(ctx)
        ctx.session.put(AUTHENTICATED, True)
        ctx.session.put(USERNAME, username)

    def logout(self, ctx: RequestSession) -> None:
        self._migrate(ctx)
        ctx.session.put(AUTHENTICATED, False)
        ctx.session.delete(USERNAME)

    async def ensure_authenticated(self, ctx: RequestSession) -> str:
        """Ensure the session is authenticated as an existing user, return the username."""
        log = ctx.logger

        if not self.is_authenticated(ctx.session):
            log.info("request_blocked_unauthenticated")
            raise AccessDeniedError

        username = ctx.session.get(USERNAME)
        if not isinstance(username, str) or not username:
            log.error("session_username_invalid", value_type=type(username).__name__)
            raise AccessDeniedError

        try:
            exists = await self.core.services.user.user_exists(username)
        except PyMongoError:
            log.exception("user_lookup_failed", username=username)
            raise AccessDeniedError from None

        if not exists:
            # Account is gone: stale state or a hijacked session. Drop the old id.
            log.warning("request_blocked_potential_hijacking", username=username)
            self.logout(ctx)
            raise AccessDeniedError

        return username

    def _migrate(self, ctx: RequestSession) -> None:
        try:
            ctx.session = ctx.manager.migrate(ctx.session, ctx.logger)
        except SessionNotFoundError:
            # Swept or never stored: the old id is already unusable, only rotate.
            ctx.logger.info("session_vanished_before_migration")
            ctx.session = ctx.manager.rotate(ctx.session)
