from functools import cached_property
from typing import Any

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from ntumiwa.core.core import Service
from ntumiwa.core.modules.user.models import User
from ntumiwa.core.modules.user.validators import MAX_PASSWORD_BYTES, validate_password, validate_username
from ntumiwa.errors import AuthenticationError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password_hash: str, password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8")[:MAX_PASSWORD_BYTES], password_hash.encode("utf-8"))


class UserService(Service):
    """Manages administrator accounts and credential checks."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    @cached_property
    def _dummy_hash(self) -> str:
        """Hash compared against when the username is unknown, so both failures cost the same."""
        return hash_password("not-a-real-password")

    async def get_user_by_username(self, username: str) -> User:
        doc = await self._collection.find_one({"username": username})
        if doc is None:
            raise NotFoundError(f"User '{username}' not found")
        return User.model_validate(doc)

    async def user_exists(self, username: str) -> bool:
        """Check if username exists. Always hits the database."""
        return await self._collection.count_documents({"username": username}, limit=1) > 0

    async def list_users(self) -> list[User]:
        return await User.list_cursor(self._collection.find().sort("username", 1))

    async def create_user(self, username: str, password: str) -> User:
        """Create user with hashed password."""
        username = validate_username(username)
        if await self.user_exists(username):
            raise ValidationError(f"User '{username}' already exists")

        validate_password(password)
        user = User(username=username, password_hash=hash_password(password))
        await self._collection.insert_one(user.to_mongo())
        logger.info("user_created", username=username)
        return user

    async def delete_user(self, username: str) -> None:
        res = await self._collection.delete_one({"username": username})
        if res.deleted_count == 0:
            raise NotFoundError(f"User '{username}' not found")
        logger.info("user_deleted", username=username)

    async def verify_credentials(self, username: str, password: str) -> User:
        """Verify a username/password pair. Raises AuthenticationError on any mismatch."""
        doc = await self._collection.find_one({"username": username})
        user = User.model_validate(doc) if doc is not None else None

        password_hash = user.password_hash if user is not None else self._dummy_hash
        matches = check_password(password_hash, password)

        if user is None or not matches:
            raise AuthenticationError
        return user

    async def ensure_admin_user_exists(self) -> None:
        """Create the configured bootstrap administrator if missing."""
        username, password = self.core.config.admin_username, self.core.config.admin_password
        if not username or not password:
            return
        if not await self.user_exists(username):
            await self.create_user(username, password)

    async def on_start(self) -> None:
        """Initialize indexes and the bootstrap administrator."""
        await self._collection.create_index([("username", 1)], unique=True)
        await self.ensure_admin_user_exists()
        logger.debug("user_service_started", user_count=await self._collection.count_documents({}))
