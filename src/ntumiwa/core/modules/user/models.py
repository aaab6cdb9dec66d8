from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ntumiwa.core.db import MongoModel
from ntumiwa.utils import now


class User(MongoModel):
    """Administrator account with credentials."""

    username: str
    password_hash: str  # bcrypt hash
    created_at: datetime = Field(default_factory=now)


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    created_at: datetime = Field(..., description="Account creation time")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, username=user.username, created_at=user.created_at)
