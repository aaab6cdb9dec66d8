from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from ntumiwa.core.core import Service
from ntumiwa.core.modules.venue.models import Venue
from ntumiwa.errors import NotFoundError
from ntumiwa.utils import ensure_not_blank


class VenueService(Service):
    """Service for managing venues."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("venues")

    async def get_venue(self, venue_id: UUID) -> Venue:
        doc = await self._collection.find_one({"_id": venue_id})
        if doc is None:
            raise NotFoundError(f"Venue '{venue_id}' not found")
        return Venue.model_validate(doc)

    async def has_venue(self, venue_id: UUID) -> bool:
        return await self._collection.count_documents({"_id": venue_id}, limit=1) > 0

    async def list_venues(self) -> list[Venue]:
        return await Venue.list_cursor(self._collection.find().sort("address", 1))

    async def create_venue(self, address: str) -> Venue:
        venue = Venue(address=ensure_not_blank(address, "address"))
        await self._collection.insert_one(venue.to_mongo())
        return venue

    async def update_venue(self, venue_id: UUID, address: str) -> Venue:
        res = await self._collection.update_one(
            {"_id": venue_id}, {"$set": {"address": ensure_not_blank(address, "address")}}
        )
        if res.matched_count == 0:
            raise NotFoundError(f"Venue '{venue_id}' not found")
        return await self.get_venue(venue_id)

    async def delete_venue(self, venue_id: UUID) -> None:
        """Delete a venue. Fails with ConflictError while a published or archived event uses it."""
        if not await self.has_venue(venue_id):
            raise NotFoundError(f"Venue '{venue_id}' not found")
        await self.core.services.event.release_reference("venue_id", venue_id)
        await self._collection.delete_one({"_id": venue_id})
