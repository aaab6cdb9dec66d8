from typing import Any
from uuid import UUID

import structlog
from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from ntumiwa.core.core import Service
from ntumiwa.core.modules.event.models import (
    Event,
    EventListItem,
    EventStatus,
    EventView,
    PerformancePiece,
    PerformanceView,
    Timeframe,
    text_date,
)
from ntumiwa.core.modules.event.validators import (
    build_event_query,
    ensure_mutable,
    ensure_publishable,
    validate_event_changes,
)
from ntumiwa.errors import ConflictError, NotFoundError, ValidationError
from ntumiwa.utils import now

logger = structlog.get_logger(__name__)


class EventService(Service):
    """Service for managing events and their publication status."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("events")

    async def on_start(self) -> None:
        await self._collection.create_index([("status", 1), ("date", 1)])
        await self._collection.create_index([("venue_id", 1)])
        await self._collection.create_index([("programme_id", 1)])

    async def get_event(self, event_id: UUID) -> Event:
        doc = await self._collection.find_one({"_id": event_id})
        if doc is None:
            raise NotFoundError(f"Event '{event_id}' not found")
        return Event.model_validate(doc)

    async def get_event_view(self, event_id: UUID) -> EventView:
        event = await self.get_event(event_id)
        venue = await self.core.services.venue.get_venue(event.venue_id) if event.venue_id else None
        programme = (
            await self.core.services.programme.get_programme_view(event.programme_id) if event.programme_id else None
        )
        return EventView(
            id=event.id,
            title=event.title,
            venue=venue,
            date=event.date,
            text_date=text_date(event.date),
            ticket_link=event.ticket_link,
            programme=programme,
            status=event.status,
            notes=event.notes,
            created_at=event.created_at,
            updated_at=event.updated_at,
        )

    async def list_events(self, timeframe: Timeframe | None, status: EventStatus | None) -> list[EventListItem]:
        cursor = self._collection.find(build_event_query(timeframe, status)).sort("date", ASCENDING)
        return [EventListItem.from_domain(event) for event in await Event.list_cursor(cursor)]

    async def create_event(self, title: str, fields: dict[str, Any]) -> EventView:
        """Create a draft event. ``fields`` holds the optional editable fields."""
        values = validate_event_changes({**fields, "title": title})
        await self._check_references(values)
        event = Event(**values)
        await self._collection.insert_one(event.to_mongo())
        logger.info("event_created", event_id=str(event.id))
        return await self.get_event_view(event.id)

    async def update_event(self, event_id: UUID, changes: dict[str, Any]) -> EventView:
        """Partially update a draft event."""
        ensure_mutable(await self.get_event(event_id))
        values = validate_event_changes(changes)
        await self._check_references(values)

        res = await self._collection.update_one(
            {"_id": event_id, "status": EventStatus.DRAFT.value}, {"$set": {**values, "updated_at": now()}}
        )
        if res.matched_count == 0:
            raise ConflictError("Event changed status during the update")
        return await self.get_event_view(event_id)

    async def set_status(self, event_id: UUID, status: EventStatus) -> EventView:
        """Move an event to ``status``. Setting the current status is a no-op."""
        event = await self.get_event(event_id)
        if event.status is status:
            return await self.get_event_view(event_id)
        if status is EventStatus.PUBLISHED:
            ensure_publishable(event)

        await self._collection.update_one({"_id": event_id}, {"$set": {"status": status.value, "updated_at": now()}})
        logger.info("event_status_changed", event_id=str(event_id), old=event.status.value, new=status.value)
        return await self.get_event_view(event_id)

    async def delete_event(self, event_id: UUID) -> None:
        res = await self._collection.delete_one({"_id": event_id})
        if res.deleted_count == 0:
            raise NotFoundError(f"Event '{event_id}' not found")

    async def count_events_by_programme(self) -> dict[UUID, int]:
        pipeline = [
            {"$match": {"programme_id": {"$ne": None}}},
            {"$group": {"_id": "$programme_id", "count": {"$sum": 1}}},
        ]
        cursor = await self._collection.aggregate(pipeline)
        return {doc["_id"]: doc["count"] async for doc in cursor}

    async def release_reference(self, field: str, target_id: UUID) -> None:
        """Clear a venue or programme reference from draft events.

        Raises ConflictError if a published or archived event still uses it.
        """
        locked = await self._collection.count_documents(
            {field: target_id, "status": {"$ne": EventStatus.DRAFT.value}}, limit=1
        )
        if locked:
            raise ConflictError(f"Cannot delete: still used by a published or archived event ({field})")
        await self._collection.update_many({field: target_id}, {"$set": {field: None, "updated_at": now()}})

    async def list_performances(self, timeframe: Timeframe) -> list[PerformanceView]:
        """Published events for the public site, soonest first when upcoming, latest first when past."""
        order = ASCENDING if timeframe is Timeframe.UPCOMING else DESCENDING
        cursor = self._collection.find(build_event_query(timeframe, EventStatus.PUBLISHED)).sort("date", order)
        events = await Event.list_cursor(cursor)

        performances: list[PerformanceView] = []
        for event in events:
            if event.date is None or event.venue_id is None or event.programme_id is None or event.ticket_link is None:
                logger.warning("incomplete_published_event", event_id=str(event.id))
                continue
            venue = await self.core.services.venue.get_venue(event.venue_id)
            programme = await self.core.services.programme.get_programme_view(event.programme_id)
            performances.append(
                PerformanceView(
                    title=event.title,
                    exact_date=event.date.date().isoformat(),
                    date=text_date(event.date) or "",
                    venue=venue.address,
                    programme=[PerformancePiece(composer=p.composer_name, title=p.title) for p in programme.pieces],
                    ticket_link=event.ticket_link,
                )
            )
        return performances

    async def _check_references(self, values: dict[str, Any]) -> None:
        venue_id = values.get("venue_id")
        if venue_id is not None and not await self.core.services.venue.has_venue(venue_id):
            raise ValidationError(f"Venue '{venue_id}' does not exist")
        programme_id = values.get("programme_id")
        if programme_id is not None and not await self.core.services.programme.has_programme(programme_id):
            raise ValidationError(f"Programme '{programme_id}' does not exist")
