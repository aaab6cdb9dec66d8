from uuid import UUID

from pydantic import BaseModel, Field

from ntumiwa.core.db import MongoModel
from ntumiwa.core.modules.composer.models import Composer


class Piece(MongoModel):
    """Musical work by a single composer."""

    title: str
    composer_id: UUID


class PieceView(BaseModel):
    """Piece with its composer's name resolved (API representation)."""

    id: UUID = Field(..., description="Piece ID")
    title: str = Field(..., description="Piece title")
    composer_id: UUID = Field(..., description="Composer ID")
    composer_name: str = Field(..., description="Composer full name")

    @classmethod
    def from_domain(cls, piece: Piece, composer: Composer | None) -> "PieceView":
        return cls(
            id=piece.id,
            title=piece.title,
            composer_id=piece.composer_id,
            composer_name=composer.full_name if composer is not None else "",
        )
