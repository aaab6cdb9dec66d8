from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ntumiwa.core.modules.composer.models import Composer
from ntumiwa.web.deps import AppDep, SessionDep
from ntumiwa.web.openapi import ErrorResponse

router = APIRouter(tags=["composers"])


class CreateComposerRequest(BaseModel):
    """Request to create a composer."""

    short_name: str = Field(..., description="Name used in compact listings")
    full_name: str = Field(..., description="Full name")

    model_config = {"json_schema_extra": {"examples": [{"short_name": "Chopin", "full_name": "Frédéric Chopin"}]}}


class UpdateComposerRequest(BaseModel):
    """Partial composer update; omitted fields are left unchanged."""

    short_name: str | None = Field(None, description="Name used in compact listings")
    full_name: str | None = Field(None, description="Full name")


@router.get(
    "/composers",
    summary="List composers",
    operation_id="listComposers",
    responses={403: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_composers(app: AppDep, ctx: SessionDep) -> list[Composer]:
    return await app.get_composers(ctx)


@router.get(
    "/composers/{composer_id}",
    summary="Get composer",
    operation_id="getComposer",
    responses={
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Composer not found"},
    },
)
async def get_composer(composer_id: UUID, app: AppDep, ctx: SessionDep) -> Composer:
    return await app.get_composer(ctx, composer_id)


@router.post(
    "/composers",
    summary="Create composer",
    operation_id="createComposer",
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Blank name"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_composer(req: CreateComposerRequest, app: AppDep, ctx: SessionDep) -> Composer:
    return await app.create_composer(ctx, req.short_name, req.full_name)


@router.put(
    "/composers/{composer_id}",
    summary="Update composer",
    operation_id="updateComposer",
    responses={
        400: {"model": ErrorResponse, "description": "Blank name or empty update"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Composer not found"},
    },
)
async def update_composer(composer_id: UUID, req: UpdateComposerRequest, app: AppDep, ctx: SessionDep) -> Composer:
    return await app.update_composer(ctx, composer_id, req.short_name, req.full_name)


@router.delete(
    "/composers/{composer_id}",
    summary="Delete composer",
    description="Delete a composer together with their pieces. The pieces are removed from every programme.",
    operation_id="deleteComposer",
    status_code=204,
    responses={
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Composer not found"},
    },
)
async def delete_composer(composer_id: UUID, app: AppDep, ctx: SessionDep) -> None:
    await app.delete_composer(ctx, composer_id)
