from typing import Annotated

from fastapi import APIRouter, Form, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ntumiwa.web.deps import AppDep, SessionDep
from ntumiwa.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class CsrfTokenResponse(BaseModel):
    """CSRF token to submit with the login form."""

    csrf_token: str = Field(..., description="Token for the 'csrf_token' form field or the X-CSRF-Token header")


class LoginResponse(BaseModel):
    """Authentication response."""

    username: str = Field(..., description="Authenticated username")
    csrf_token: str = Field(..., description="CSRF token of the migrated session")


@router.get(
    "/auth/login",
    summary="Prepare login",
    description="Return the session's CSRF token for the login form, or 204 when already authenticated.",
    operation_id="getLogin",
    responses={
        200: {"model": CsrfTokenResponse, "description": "Anonymous session, login form data"},
        204: {"description": "Already authenticated"},
    },
)
async def get_login(app: AppDep, ctx: SessionDep) -> Response:
    if app.is_authenticated(ctx):
        return Response(status_code=204)
    return JSONResponse(CsrfTokenResponse(csrf_token=ctx.session.csrf_token).model_dump())


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with username and password. The session id and CSRF token are rotated.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "CSRF token mismatch"},
    },
)
async def login(
    username: Annotated[str, Form(description="Username for authentication")],
    password: Annotated[str, Form(description="Password for authentication")],
    app: AppDep,
    ctx: SessionDep,
) -> LoginResponse:
    await app.login(ctx, username, password)
    return LoginResponse(username=await app.get_current_username(ctx), csrf_token=ctx.session.csrf_token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Drop the authentication from the current session. The session id and CSRF token are rotated.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out (or was not logged in)"},
        403: {"model": ErrorResponse, "description": "CSRF token mismatch"},
    },
)
async def logout(app: AppDep, ctx: SessionDep) -> None:
    await app.logout(ctx)
