from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from ntumiwa.core.modules.piece.models import PieceView
from ntumiwa.web.deps import AppDep, SessionDep
from ntumiwa.web.openapi import ErrorResponse

router = APIRouter(tags=["pieces"])


class CreatePieceRequest(BaseModel):
    """Request to create a piece."""

    title: str = Field(..., description="Piece title")
    composer_id: UUID = Field(..., description="Composer of the piece (must exist)")


class UpdatePieceRequest(BaseModel):
    """Partial piece update; omitted fields are left unchanged."""

    title: str | None = Field(None, description="Piece title")
    composer_id: UUID | None = Field(None, description="Composer of the piece (must exist)")


@router.get(
    "/pieces",
    summary="List pieces",
    operation_id="listPieces",
    responses={403: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_pieces(
    app: AppDep,
    ctx: SessionDep,
    composer_id: Annotated[UUID | None, Query(description="Only pieces by this composer")] = None,
) -> list[PieceView]:
    return await app.get_pieces(ctx, composer_id)


@router.get(
    "/pieces/{piece_id}",
    summary="Get piece",
    operation_id="getPiece",
    responses={
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Piece not found"},
    },
)
async def get_piece(piece_id: UUID, app: AppDep, ctx: SessionDep) -> PieceView:
    return await app.get_piece(ctx, piece_id)


@router.post(
    "/pieces",
    summary="Create piece",
    operation_id="createPiece",
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Blank title or unknown composer"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_piece(req: CreatePieceRequest, app: AppDep, ctx: SessionDep) -> PieceView:
    return await app.create_piece(ctx, req.title, req.composer_id)


@router.put(
    "/pieces/{piece_id}",
    summary="Update piece",
    operation_id="updatePiece",
    responses={
        400: {"model": ErrorResponse, "description": "Blank title, unknown composer or empty update"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Piece not found"},
    },
)
async def update_piece(piece_id: UUID, req: UpdatePieceRequest, app: AppDep, ctx: SessionDep) -> PieceView:
    return await app.update_piece(ctx, piece_id, req.title, req.composer_id)


@router.delete(
    "/pieces/{piece_id}",
    summary="Delete piece",
    description="Delete a piece and remove it from every programme.",
    operation_id="deletePiece",
    status_code=204,
    responses={
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Piece not found"},
    },
)
async def delete_piece(piece_id: UUID, app: AppDep, ctx: SessionDep) -> None:
    await app.delete_piece(ctx, piece_id)
