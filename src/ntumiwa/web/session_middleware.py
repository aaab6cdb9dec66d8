"""ASGI middleware binding a server-side session to every request.

The ``Set-Cookie`` header is added when the response starts, exactly once per
request, and also when the wrapped app returns without responding at all.
"""

from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import HTTPConnection, Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send
from structlog.typing import FilteringBoundLogger

from ntumiwa.core.modules.session.context import RequestSession
from ntumiwa.core.modules.session.csrf import (
    CSRF_FORM_FIELD,
    CSRF_HEADER,
    requires_csrf_check,
    select_submitted_token,
    verify_csrf_token,
)
from ntumiwa.core.modules.session.manager import SessionManager
from ntumiwa.core.modules.session.manager import logger as session_logger
from ntumiwa.core.modules.session.models import USERNAME, Session
from ntumiwa.utils import short_id

SESSION_STATE_KEY = "session"
LOGGER_STATE_KEY = "logger"
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class SessionMiddleware:
    def __init__(self, app: ASGIApp, manager: SessionManager) -> None:
        self.app = app
        self.manager = manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        log: FilteringBoundLogger = state.get(LOGGER_STATE_KEY, session_logger)
        connection = HTTPConnection(scope)

        session = self.manager.start(connection.cookies.get(self.manager.cookie_name), log)
        ctx = RequestSession(session=session, manager=self.manager, logger=log)
        state[SESSION_STATE_KEY] = ctx

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start" and not ctx.cookie_written:
                self._persist(ctx, MutableHeaders(scope=message))
            await send(message)

        if requires_csrf_check(scope["method"]):
            receive, submitted = await self._submitted_csrf_token(scope, receive)
            if not verify_csrf_token(session, submitted):
                log.warning(
                    "csrf_token_mismatch",
                    session=short_id(session.id),
                    username=session.get(USERNAME),
                    submitted=submitted is not None,
                )
                response = JSONResponse({"message": "CSRF token mismatch", "type": "access_denied"}, status_code=403)
                await response(scope, receive, send_wrapper)
                return

        await self.app(scope, receive, send_wrapper)

        if not ctx.cookie_written:
            # The app returned without responding; the client still gets its session cookie.
            await Response(status_code=200)(scope, receive, send_wrapper)

    def _persist(self, ctx: RequestSession, headers: MutableHeaders) -> None:
        """Save the session and attach the session headers to the outgoing response."""
        if ctx.session.retired:
            # Another request migrated this session; neither its old nor its new id goes to this client.
            ctx.logger.warning("session_migrated_during_request", session=short_id(ctx.session.id))
            ctx.session = Session()
        self.manager.save(ctx.session)
        headers.append("Set-Cookie", self.manager.cookie_header(ctx.session))
        headers.add_vary_header("Cookie")
        headers["Cache-Control"] = "no-cache"
        headers[CSRF_HEADER] = ctx.session.csrf_token
        ctx.cookie_written = True

    async def _submitted_csrf_token(self, scope: Scope, receive: Receive) -> tuple[Receive, str | None]:
        """Read the token from a form body or the header; the body is replayed downstream."""
        connection = HTTPConnection(scope)
        header_value = connection.headers.get(CSRF_HEADER)
        content_type = connection.headers.get("content-type", "")
        if not content_type.startswith(FORM_CONTENT_TYPES):
            return receive, select_submitted_token(None, header_value)

        body = await _read_body(receive)
        try:
            async with Request(scope, _replay(body, receive)).form() as form:
                form_value = form.get(CSRF_FORM_FIELD)
        except (HTTPException, MultiPartException):
            form_value = None
        return _replay(body, receive), select_submitted_token(form_value, header_value)


async def _read_body(receive: Receive) -> bytes:
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def _replay(body: bytes, receive: Receive) -> Receive:
    """Receive callable yielding ``body`` once, then deferring to the original channel."""
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay
