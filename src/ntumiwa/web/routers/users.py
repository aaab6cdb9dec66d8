from fastapi import APIRouter
from pydantic import BaseModel, Field

from ntumiwa.core.modules.user.models import UserView
from ntumiwa.web.deps import AppDep, SessionDep
from ntumiwa.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


class CreateUserRequest(BaseModel):
    """Request to create a new user."""

    username: str = Field(..., min_length=1, description="Username for the new user")
    password: str = Field(..., min_length=1, description="Password for the new user")


@router.get(
    "/users",
    summary="List all users",
    description="Get all administrator accounts.",
    operation_id="listUsers",
    responses={
        200: {"description": "List of all users"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_users(app: AppDep, ctx: SessionDep) -> list[UserView]:
    return await app.get_all_users(ctx)


@router.post(
    "/users",
    summary="Create new user",
    description="Create a new administrator account.",
    operation_id="createUser",
    status_code=201,
    responses={
        201: {"description": "User created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid username or password"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_user(req: CreateUserRequest, app: AppDep, ctx: SessionDep) -> UserView:
    return await app.create_user(ctx, req.username, req.password)


@router.delete(
    "/users/{username}",
    summary="Delete user",
    description="Delete an administrator account. Sessions of the deleted user stop working on their next request.",
    operation_id="deleteUser",
    status_code=204,
    responses={
        204: {"description": "User deleted successfully"},
        400: {"model": ErrorResponse, "description": "Cannot delete yourself"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def delete_user(username: str, app: AppDep, ctx: SessionDep) -> None:
    await app.delete_user(ctx, username)
