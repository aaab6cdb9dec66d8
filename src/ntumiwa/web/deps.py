from typing import Annotated, cast

from fastapi import Depends, Request

from ntumiwa.app import App
from ntumiwa.core.modules.session.context import RequestSession
from ntumiwa.core.modules.session.errors import SessionContextError


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


def get_request_session(request: Request) -> RequestSession:
    """Session carrier attached by SessionMiddleware."""
    ctx = request.scope.get("state", {}).get("session")
    if not isinstance(ctx, RequestSession):
        raise SessionContextError("no session bound to the request, is SessionMiddleware installed?")
    return ctx


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
SessionDep = Annotated[RequestSession, Depends(get_request_session)]
