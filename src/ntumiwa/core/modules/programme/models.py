from uuid import UUID

from pydantic import BaseModel, Field

from ntumiwa.core.db import MongoModel


class ProgrammePiece(BaseModel):
    """Position of a piece within a programme."""

    piece_id: UUID = Field(..., description="Piece ID")
    sequence: int = Field(..., gt=0, description="1-based position in the programme")


class Programme(MongoModel):
    """Ordered list of pieces performed at events."""

    title: str
    pieces: list[ProgrammePiece] = []


class ProgrammePieceView(BaseModel):
    piece_id: UUID = Field(..., description="Piece ID")
    sequence: int = Field(..., description="Position in the programme")
    title: str = Field(..., description="Piece title")
    composer_name: str = Field(..., description="Composer full name")


class ProgrammeView(BaseModel):
    """Programme with its pieces resolved (API representation)."""

    id: UUID = Field(..., description="Programme ID")
    title: str = Field(..., description="Programme title")
    pieces: list[ProgrammePieceView] = Field(..., description="Pieces in performance order")


class ProgrammeListItem(BaseModel):
    """Programme summary for list views."""

    id: UUID = Field(..., description="Programme ID")
    title: str = Field(..., description="Programme title")
    piece_count: int = Field(..., description="Number of pieces")
    event_count: int = Field(..., description="Number of events using the programme")
