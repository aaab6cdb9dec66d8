from ntumiwa.core.db import MongoModel


class Composer(MongoModel):
    """Composer referenced by pieces."""

    short_name: str  # e.g. "Chopin"
    full_name: str  # e.g. "Frédéric Chopin"
