from ntumiwa.core.db import MongoModel


class Venue(MongoModel):
    """Performance venue."""

    address: str
