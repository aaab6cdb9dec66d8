from typing import Any
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from ntumiwa.core.core import Service
from ntumiwa.core.modules.piece.models import Piece, PieceView
from ntumiwa.errors import NotFoundError, ValidationError
from ntumiwa.utils import ensure_not_blank


class PieceService(Service):
    """Service for managing pieces."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("pieces")

    async def on_start(self) -> None:
        await self._collection.create_index([("composer_id", 1)])

    async def get_piece(self, piece_id: UUID) -> Piece:
        doc = await self._collection.find_one({"_id": piece_id})
        if doc is None:
            raise NotFoundError(f"Piece '{piece_id}' not found")
        return Piece.model_validate(doc)

    async def get_piece_view(self, piece_id: UUID) -> PieceView:
        piece = await self.get_piece(piece_id)
        return (await self.to_views([piece]))[0]

    async def get_pieces_by_ids(self, piece_ids: list[UUID]) -> dict[UUID, Piece]:
        pieces = await Piece.list_cursor(self._collection.find({"_id": {"$in": piece_ids}}))
        return {piece.id: piece for piece in pieces}

    async def list_pieces(self, composer_id: UUID | None = None) -> list[PieceView]:
        query: dict[str, Any] = {} if composer_id is None else {"composer_id": composer_id}
        pieces = await Piece.list_cursor(self._collection.find(query).sort("title", 1))
        return await self.to_views(pieces)

    async def to_views(self, pieces: list[Piece]) -> list[PieceView]:
        """Resolve composer names with a single lookup."""
        composers = await self.core.services.composer.get_composers_by_ids(list({p.composer_id for p in pieces}))
        return [PieceView.from_domain(piece, composers.get(piece.composer_id)) for piece in pieces]

    async def create_piece(self, title: str, composer_id: UUID) -> PieceView:
        if not await self.core.services.composer.has_composer(composer_id):
            raise ValidationError(f"Composer '{composer_id}' does not exist")

        piece = Piece(title=ensure_not_blank(title, "title"), composer_id=composer_id)
        await self._collection.insert_one(piece.to_mongo())
        return await self.get_piece_view(piece.id)

    async def update_piece(self, piece_id: UUID, title: str | None, composer_id: UUID | None) -> PieceView:
        """Partially update a piece, None values are left unchanged."""
        updates: dict[str, Any] = {}
        if title is not None:
            updates["title"] = ensure_not_blank(title, "title")
        if composer_id is not None:
            if not await self.core.services.composer.has_composer(composer_id):
                raise ValidationError(f"Composer '{composer_id}' does not exist")
            updates["composer_id"] = composer_id
        if not updates:
            raise ValidationError("Request body is empty")

        res = await self._collection.update_one({"_id": piece_id}, {"$set": updates})
        if res.matched_count == 0:
            raise NotFoundError(f"Piece '{piece_id}' not found")
        return await self.get_piece_view(piece_id)

    async def delete_piece(self, piece_id: UUID) -> None:
        res = await self._collection.delete_one({"_id": piece_id})
        if res.deleted_count == 0:
            raise NotFoundError(f"Piece '{piece_id}' not found")
        await self.core.services.programme.remove_pieces_from_programmes([piece_id])

    async def delete_pieces_by_composer(self, composer_id: UUID) -> int:
        """Delete all pieces by a composer and drop them from programmes, return count deleted."""
        piece_ids = [doc["_id"] async for doc in self._collection.find({"composer_id": composer_id}, {"_id": 1})]
        if not piece_ids:
            return 0
        await self.core.services.programme.remove_pieces_from_programmes(piece_ids)
        res = await self._collection.delete_many({"_id": {"$in": piece_ids}})
        return res.deleted_count
