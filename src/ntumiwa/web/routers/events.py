from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from ntumiwa.core.modules.event.models import EventListItem, EventStatus, EventView
from ntumiwa.web.deps import AppDep, SessionDep
from ntumiwa.web.openapi import ErrorResponse

router = APIRouter(tags=["events"])

NOT_AUTHENTICATED = {403: {"model": ErrorResponse, "description": "Not authenticated"}}
EVENT_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Event not found"}}


class CreateEventRequest(BaseModel):
    """Request to create a draft event."""

    title: str = Field(..., description="Event title")
    date: datetime | None = Field(None, description="Event date and time (UTC)")
    ticket_link: str | None = Field(None, description="Ticket sales URL")
    venue_id: UUID | None = Field(None, description="Venue (must exist)")
    programme_id: UUID | None = Field(None, description="Programme (must exist)")
    notes: str | None = Field(None, description="Internal notes")

    model_config = {
        "json_schema_extra": {
            "examples": [{"title": "Spring recital", "date": "2026-04-18T19:00:00Z", "ticket_link": None}]
        }
    }


class UpdateEventRequest(BaseModel):
    """Partial event update. Omitted fields are left unchanged, null clears optional fields."""

    title: str | None = Field(None, description="Event title (cannot be cleared)")
    date: datetime | None = Field(None, description="Event date and time (UTC)")
    ticket_link: str | None = Field(None, description="Ticket sales URL")
    venue_id: UUID | None = Field(None, description="Venue (must exist)")
    programme_id: UUID | None = Field(None, description="Programme (must exist)")
    notes: str | None = Field(None, description="Internal notes")


@router.get(
    "/events",
    summary="List events",
    description="List events ordered by date, optionally filtered by timeframe and status.",
    operation_id="listEvents",
    responses={400: {"model": ErrorResponse, "description": "Invalid filter"}, **NOT_AUTHENTICATED},
)
async def list_events(
    app: AppDep,
    ctx: SessionDep,
    timeframe: Annotated[str | None, Query(description="'upcoming' or 'past'")] = None,
    status: Annotated[str | None, Query(description="'draft', 'published' or 'archived'")] = None,
) -> list[EventListItem]:
    return await app.get_events(ctx, timeframe, status)


@router.get(
    "/events/{event_id}",
    summary="Get event",
    operation_id="getEvent",
    responses={**NOT_AUTHENTICATED, **EVENT_NOT_FOUND},
)
async def get_event(event_id: UUID, app: AppDep, ctx: SessionDep) -> EventView:
    return await app.get_event(ctx, event_id)


@router.post(
    "/events",
    summary="Create event",
    description="Create an event in draft status.",
    operation_id="createEvent",
    status_code=201,
    responses={400: {"model": ErrorResponse, "description": "Blank title or unknown venue/programme"}, **NOT_AUTHENTICATED},
)
async def create_event(req: CreateEventRequest, app: AppDep, ctx: SessionDep) -> EventView:
    return await app.create_event(ctx, req.title, req.model_dump(exclude_unset=True, exclude={"title"}))


@router.put(
    "/events/{event_id}",
    summary="Update event",
    description="Partially update a draft event.",
    operation_id="updateEvent",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or empty update"},
        409: {"model": ErrorResponse, "description": "Event is not a draft"},
        **NOT_AUTHENTICATED,
        **EVENT_NOT_FOUND,
    },
)
async def update_event(event_id: UUID, req: UpdateEventRequest, app: AppDep, ctx: SessionDep) -> EventView:
    return await app.update_event(ctx, event_id, req.model_dump(exclude_unset=True))


@router.delete(
    "/events/{event_id}",
    summary="Delete event",
    operation_id="deleteEvent",
    status_code=204,
    responses={**NOT_AUTHENTICATED, **EVENT_NOT_FOUND},
)
async def delete_event(event_id: UUID, app: AppDep, ctx: SessionDep) -> None:
    await app.delete_event(ctx, event_id)


@router.post(
    "/events/{event_id}/draft",
    summary="Move event to draft",
    description="Unpublish or unarchive an event so it can be edited again.",
    operation_id="draftEvent",
    responses={**NOT_AUTHENTICATED, **EVENT_NOT_FOUND},
)
async def draft_event(event_id: UUID, app: AppDep, ctx: SessionDep) -> EventView:
    return await app.set_event_status(ctx, event_id, EventStatus.DRAFT)


@router.post(
    "/events/{event_id}/publish",
    summary="Publish event",
    description="Publish an event on the public site. Requires date, ticket link, venue and programme.",
    operation_id="publishEvent",
    responses={
        400: {"model": ErrorResponse, "description": "Event is incomplete"},
        **NOT_AUTHENTICATED,
        **EVENT_NOT_FOUND,
    },
)
async def publish_event(event_id: UUID, app: AppDep, ctx: SessionDep) -> EventView:
    return await app.set_event_status(ctx, event_id, EventStatus.PUBLISHED)


@router.post(
    "/events/{event_id}/archive",
    summary="Archive event",
    operation_id="archiveEvent",
    responses={**NOT_AUTHENTICATED, **EVENT_NOT_FOUND},
)
async def archive_event(event_id: UUID, app: AppDep, ctx: SessionDep) -> EventView:
    return await app.set_event_status(ctx, event_id, EventStatus.ARCHIVED)
