from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from ntumiwa.core.db import MongoModel
from ntumiwa.core.modules.programme.models import ProgrammeView
from ntumiwa.core.modules.venue.models import Venue
from ntumiwa.utils import now


class EventStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Timeframe(StrEnum):
    UPCOMING = "upcoming"
    PAST = "past"


def text_date(date: datetime | None) -> str | None:
    """Human date as shown on the public site, e.g. "2 January, 2006"."""
    if date is None:
        return None
    return f"{date.day} {date:%B}, {date.year}"


class Event(MongoModel):
    """Performance event. Only drafts are editable."""

    title: str
    date: datetime | None = None
    ticket_link: str | None = None
    venue_id: UUID | None = None
    programme_id: UUID | None = None
    status: EventStatus = EventStatus.DRAFT
    notes: str | None = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class EventListItem(BaseModel):
    """Event summary for list views."""

    id: UUID = Field(..., description="Event ID")
    title: str = Field(..., description="Event title")
    text_date: str | None = Field(..., description="Human readable date")
    status: EventStatus = Field(..., description="Publication status")
    created_at: datetime = Field(..., description="Creation time")
    updated_at: datetime = Field(..., description="Last modification time")

    @classmethod
    def from_domain(cls, event: Event) -> "EventListItem":
        return cls(
            id=event.id,
            title=event.title,
            text_date=text_date(event.date),
            status=event.status,
            created_at=event.created_at,
            updated_at=event.updated_at,
        )


class EventView(BaseModel):
    """Event with venue and programme expanded (API representation)."""

    id: UUID = Field(..., description="Event ID")
    title: str = Field(..., description="Event title")
    venue: Venue | None = Field(..., description="Venue, if set")
    date: datetime | None = Field(..., description="Event date")
    text_date: str | None = Field(..., description="Human readable date")
    ticket_link: str | None = Field(..., description="Ticket sales URL")
    programme: ProgrammeView | None = Field(..., description="Programme, if set")
    status: EventStatus = Field(..., description="Publication status")
    notes: str | None = Field(..., description="Internal notes")
    created_at: datetime = Field(..., description="Creation time")
    updated_at: datetime = Field(..., description="Last modification time")


class PerformancePiece(BaseModel):
    composer: str = Field(..., description="Composer full name")
    title: str = Field(..., description="Piece title")


class PerformanceView(BaseModel):
    """Published event for the public site. Carries no internal ids."""

    title: str = Field(..., description="Event title")
    exact_date: str = Field(..., description="ISO date, e.g. 2006-01-02")
    date: str = Field(..., description="Human readable date")
    venue: str = Field(..., description="Venue address")
    programme: list[PerformancePiece] = Field(..., description="Pieces in performance order")
    ticket_link: str = Field(..., description="Ticket sales URL")
