from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ntumiwa.core.modules.programme.models import ProgrammeListItem, ProgrammePiece, ProgrammeView
from ntumiwa.web.deps import AppDep, SessionDep
from ntumiwa.web.openapi import ErrorResponse

router = APIRouter(tags=["programmes"])


class CreateProgrammeRequest(BaseModel):
    """Request to create a programme."""

    title: str = Field(..., description="Programme title")
    pieces: list[ProgrammePiece] = Field(default_factory=list, description="Pieces with their 1-based positions")


class UpdateProgrammeRequest(BaseModel):
    """Partial programme update; a given piece list replaces the current one."""

    title: str | None = Field(None, description="Programme title")
    pieces: list[ProgrammePiece] | None = Field(None, description="Pieces with their 1-based positions")


@router.get(
    "/programmes",
    summary="List programmes",
    description="List programmes with their piece and event counts.",
    operation_id="listProgrammes",
    responses={403: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_programmes(app: AppDep, ctx: SessionDep) -> list[ProgrammeListItem]:
    return await app.get_programmes(ctx)


@router.get(
    "/programmes/{programme_id}",
    summary="Get programme",
    operation_id="getProgramme",
    responses={
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Programme not found"},
    },
)
async def get_programme(programme_id: UUID, app: AppDep, ctx: SessionDep) -> ProgrammeView:
    return await app.get_programme(ctx, programme_id)


@router.post(
    "/programmes",
    summary="Create programme",
    operation_id="createProgramme",
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Blank title, duplicate or unknown pieces"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_programme(req: CreateProgrammeRequest, app: AppDep, ctx: SessionDep) -> ProgrammeView:
    return await app.create_programme(ctx, req.title, req.pieces)


@router.put(
    "/programmes/{programme_id}",
    summary="Update programme",
    operation_id="updateProgramme",
    responses={
        400: {"model": ErrorResponse, "description": "Blank title, duplicate or unknown pieces, or empty update"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Programme not found"},
    },
)
async def update_programme(
    programme_id: UUID, req: UpdateProgrammeRequest, app: AppDep, ctx: SessionDep
) -> ProgrammeView:
    return await app.update_programme(ctx, programme_id, req.title, req.pieces)


@router.delete(
    "/programmes/{programme_id}",
    summary="Delete programme",
    description="Delete a programme. Draft events lose it; published or archived events block the deletion.",
    operation_id="deleteProgramme",
    status_code=204,
    responses={
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Programme not found"},
        409: {"model": ErrorResponse, "description": "Programme used by a published or archived event"},
    },
)
async def delete_programme(programme_id: UUID, app: AppDep, ctx: SessionDep) -> None:
    await app.delete_programme(ctx, programme_id)
