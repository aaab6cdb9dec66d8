from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from ntumiwa.core.core import Service
from ntumiwa.core.modules.programme.models import (
    Programme,
    ProgrammeListItem,
    ProgrammePiece,
    ProgrammePieceView,
    ProgrammeView,
)
from ntumiwa.core.modules.programme.validators import validate_programme_pieces
from ntumiwa.errors import NotFoundError, ValidationError
from ntumiwa.utils import ensure_not_blank


class ProgrammeService(Service):
    """Service for managing programmes and their ordered pieces."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("programmes")

    async def on_start(self) -> None:
        await self._collection.create_index([("pieces.piece_id", 1)])

    async def get_programme(self, programme_id: UUID) -> Programme:
        doc = await self._collection.find_one({"_id": programme_id})
        if doc is None:
            raise NotFoundError(f"Programme '{programme_id}' not found")
        return Programme.model_validate(doc)

    async def has_programme(self, programme_id: UUID) -> bool:
        return await self._collection.count_documents({"_id": programme_id}, limit=1) > 0

    async def get_programme_view(self, programme_id: UUID) -> ProgrammeView:
        return await self.to_view(await self.get_programme(programme_id))

    async def to_view(self, programme: Programme) -> ProgrammeView:
        pieces = await self.core.services.piece.get_pieces_by_ids([p.piece_id for p in programme.pieces])
        views = await self.core.services.piece.to_views(list(pieces.values()))
        by_id = {view.id: view for view in views}
        return ProgrammeView(
            id=programme.id,
            title=programme.title,
            pieces=[
                ProgrammePieceView(
                    piece_id=entry.piece_id,
                    sequence=entry.sequence,
                    title=by_id[entry.piece_id].title,
                    composer_name=by_id[entry.piece_id].composer_name,
                )
                for entry in programme.pieces
                if entry.piece_id in by_id
            ],
        )

    async def list_programmes(self) -> list[ProgrammeListItem]:
        programmes = await Programme.list_cursor(self._collection.find().sort("title", 1))
        counts = await self.core.services.event.count_events_by_programme()
        return [
            ProgrammeListItem(
                id=programme.id,
                title=programme.title,
                piece_count=len(programme.pieces),
                event_count=counts.get(programme.id, 0),
            )
            for programme in programmes
        ]

    async def create_programme(self, title: str, pieces: list[ProgrammePiece]) -> ProgrammeView:
        programme = Programme(title=ensure_not_blank(title, "title"), pieces=await self._checked_pieces(pieces))
        await self._collection.insert_one(programme.to_mongo())
        return await self.to_view(programme)

    async def update_programme(
        self, programme_id: UUID, title: str | None, pieces: list[ProgrammePiece] | None
    ) -> ProgrammeView:
        """Partially update a programme; a given piece list replaces the existing one."""
        updates: dict[str, Any] = {}
        if title is not None:
            updates["title"] = ensure_not_blank(title, "title")
        if pieces is not None:
            updates["pieces"] = [p.model_dump() for p in await self._checked_pieces(pieces)]
        if not updates:
            raise ValidationError("Request body is empty")

        res = await self._collection.update_one({"_id": programme_id}, {"$set": updates})
        if res.matched_count == 0:
            raise NotFoundError(f"Programme '{programme_id}' not found")
        return await self.get_programme_view(programme_id)

    async def delete_programme(self, programme_id: UUID) -> None:
        """Delete a programme. Fails with ConflictError while a published or archived event uses it."""
        if not await self.has_programme(programme_id):
            raise NotFoundError(f"Programme '{programme_id}' not found")
        await self.core.services.event.release_reference("programme_id", programme_id)
        await self._collection.delete_one({"_id": programme_id})

    async def remove_pieces_from_programmes(self, piece_ids: list[UUID]) -> None:
        await self._collection.update_many({}, {"$pull": {"pieces": {"piece_id": {"$in": piece_ids}}}})

    async def _checked_pieces(self, pieces: list[ProgrammePiece]) -> list[ProgrammePiece]:
        ordered = validate_programme_pieces(pieces)
        found = await self.core.services.piece.get_pieces_by_ids([p.piece_id for p in ordered])
        missing = [str(p.piece_id) for p in ordered if p.piece_id not in found]
        if missing:
            raise ValidationError(f"Pieces do not exist: {', '.join(missing)}")
        return ordered
