import time
from uuid import uuid4

import structlog
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = structlog.get_logger("ntumiwa.web.request")


class RequestLogMiddleware:
    """Bind a per-request logger into ``scope["state"]`` and log request completion.

    Downstream middleware and handlers log through the bound logger, so every
    line carries the request id, method and path.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get("x-request-id") or uuid4().hex
        log = logger.bind(request_id=request_id, method=scope["method"], path=scope["path"])
        scope.setdefault("state", {})["logger"] = log

        status_code = 500
        started = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            log.exception("request_failed", duration_ms=_elapsed_ms(started))
            raise

        duration_ms = _elapsed_ms(started)
        if status_code >= 500:
            log.error("request_completed", status=status_code, duration_ms=duration_ms)
        elif status_code >= 400:
            log.warning("request_completed", status=status_code, duration_ms=duration_ms)
        else:
            log.info("request_completed", status=status_code, duration_ms=duration_ms)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
