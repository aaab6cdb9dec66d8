from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ntumiwa.core.modules.venue.models import Venue
from ntumiwa.web.deps import AppDep, SessionDep
from ntumiwa.web.openapi import ErrorResponse

router = APIRouter(tags=["venues"])


class VenueRequest(BaseModel):
    """Venue data."""

    address: str = Field(..., description="Venue address as shown on the public site")


@router.get(
    "/venues",
    summary="List venues",
    operation_id="listVenues",
    responses={403: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_venues(app: AppDep, ctx: SessionDep) -> list[Venue]:
    return await app.get_venues(ctx)


@router.get(
    "/venues/{venue_id}",
    summary="Get venue",
    operation_id="getVenue",
    responses={
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Venue not found"},
    },
)
async def get_venue(venue_id: UUID, app: AppDep, ctx: SessionDep) -> Venue:
    return await app.get_venue(ctx, venue_id)


@router.post(
    "/venues",
    summary="Create venue",
    operation_id="createVenue",
    status_code=201,
    responses={
        400: {"model": ErrorResponse, "description": "Blank address"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_venue(req: VenueRequest, app: AppDep, ctx: SessionDep) -> Venue:
    return await app.create_venue(ctx, req.address)


@router.put(
    "/venues/{venue_id}",
    summary="Update venue",
    operation_id="updateVenue",
    responses={
        400: {"model": ErrorResponse, "description": "Blank address"},
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Venue not found"},
    },
)
async def update_venue(venue_id: UUID, req: VenueRequest, app: AppDep, ctx: SessionDep) -> Venue:
    return await app.update_venue(ctx, venue_id, req.address)


@router.delete(
    "/venues/{venue_id}",
    summary="Delete venue",
    description="Delete a venue. Draft events lose their venue; published or archived events block the deletion.",
    operation_id="deleteVenue",
    status_code=204,
    responses={
        403: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Venue not found"},
        409: {"model": ErrorResponse, "description": "Venue used by a published or archived event"},
    },
)
async def delete_venue(venue_id: UUID, app: AppDep, ctx: SessionDep) -> None:
    await app.delete_venue(ctx, venue_id)
