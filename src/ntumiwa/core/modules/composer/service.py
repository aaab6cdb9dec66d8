from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from ntumiwa.core.core import Service
from ntumiwa.core.modules.composer.models import Composer
from ntumiwa.errors import NotFoundError, ValidationError
from ntumiwa.utils import ensure_not_blank

logger = structlog.get_logger(__name__)


class ComposerService(Service):
    """Service for managing composers."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("composers")

    async def on_start(self) -> None:
        await self._collection.create_index([("full_name", 1)])

    async def get_composer(self, composer_id: UUID) -> Composer:
        doc = await self._collection.find_one({"_id": composer_id})
        if doc is None:
            raise NotFoundError(f"Composer '{composer_id}' not found")
        return Composer.model_validate(doc)

    async def get_composers_by_ids(self, composer_ids: list[UUID]) -> dict[UUID, Composer]:
        composers = await Composer.list_cursor(self._collection.find({"_id": {"$in": composer_ids}}))
        return {composer.id: composer for composer in composers}

    async def has_composer(self, composer_id: UUID) -> bool:
        return await self._collection.count_documents({"_id": composer_id}, limit=1) > 0

    async def list_composers(self) -> list[Composer]:
        return await Composer.list_cursor(self._collection.find().sort("full_name", 1))

    async def create_composer(self, short_name: str, full_name: str) -> Composer:
        composer = Composer(
            short_name=ensure_not_blank(short_name, "short_name"),
            full_name=ensure_not_blank(full_name, "full_name"),
        )
        await self._collection.insert_one(composer.to_mongo())
        return composer

    async def update_composer(self, composer_id: UUID, short_name: str | None, full_name: str | None) -> Composer:
        """Partially update a composer, None values are left unchanged."""
        updates: dict[str, str] = {}
        if short_name is not None:
            updates["short_name"] = ensure_not_blank(short_name, "short_name")
        if full_name is not None:
            updates["full_name"] = ensure_not_blank(full_name, "full_name")
        if not updates:
            raise ValidationError("Request body is empty")

        res = await self._collection.update_one({"_id": composer_id}, {"$set": updates})
        if res.matched_count == 0:
            raise NotFoundError(f"Composer '{composer_id}' not found")
        return await self.get_composer(composer_id)

    async def delete_composer(self, composer_id: UUID) -> None:
        """Delete a composer together with all of their pieces."""
        if not await self.has_composer(composer_id):
            raise NotFoundError(f"Composer '{composer_id}' not found")

        removed = await self.core.services.piece.delete_pieces_by_composer(composer_id)
        await self._collection.delete_one({"_id": composer_id})
        logger.info("composer_deleted", composer_id=str(composer_id), pieces_removed=removed)
