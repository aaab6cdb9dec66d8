from ntumiwa.core.modules.programme.models import ProgrammePiece
from ntumiwa.errors import ValidationError


def validate_programme_pieces(pieces: list[ProgrammePiece]) -> list[ProgrammePiece]:
    """Check pieces and sequences are unique, return pieces sorted by sequence."""
    piece_ids = [p.piece_id for p in pieces]
    if len(set(piece_ids)) != len(piece_ids):
        raise ValidationError("A piece can appear only once in a programme")

    sequences = [p.sequence for p in pieces]
    if len(set(sequences)) != len(sequences):
        raise ValidationError("Sequence numbers must be unique within a programme")

    return sorted(pieces, key=lambda p: p.sequence)
