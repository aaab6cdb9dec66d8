"""Shared pytest fixtures."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ntumiwa.app import App
from ntumiwa.config import Config
from ntumiwa.core.modules.session.context import RequestSession
from ntumiwa.core.modules.session.manager import SessionManager
from ntumiwa.core.modules.session.models import Session
from ntumiwa.core.modules.session.store import SessionStore
from ntumiwa.core.modules.user.models import User
from ntumiwa.errors import AuthenticationError, NotFoundError
from ntumiwa.web.server import create_fastapi_app

SECRET_HEX = "0123456789abcdef" * 4
COOKIE_NAME = "ntumiwa_session"


class InMemoryUserService:
    """Stands in for UserService: usernames mapped to plain passwords."""

    def __init__(self, users: dict[str, str]) -> None:
        self.passwords = dict(users)

    async def verify_credentials(self, username: str, password: str) -> User:
        if self.passwords.get(username) != password:
            raise AuthenticationError
        return User(username=username, password_hash="not-a-real-hash")

    async def user_exists(self, username: str) -> bool:
        return username in self.passwords

    async def list_users(self) -> list[User]:
        return [User(username=name, password_hash="not-a-real-hash") for name in sorted(self.passwords)]

    async def create_user(self, username: str, password: str) -> User:
        self.passwords[username] = password
        return User(username=username, password_hash="not-a-real-hash")

    async def delete_user(self, username: str) -> None:
        if self.passwords.pop(username, None) is None:
            raise NotFoundError(f"User '{username}' not found")


@pytest.fixture
def secret_key() -> bytes:
    return bytes.fromhex(SECRET_HEX)


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def manager(store: SessionStore, secret_key: bytes) -> SessionManager:
    """Session manager with one hour idle and eight hour absolute expiration."""
    return SessionManager(
        store,
        secret_key=secret_key,
        cookie_name=COOKIE_NAME,
        idle_expiration=timedelta(hours=1),
        absolute_expiration=timedelta(hours=8),
        gc_interval=timedelta(hours=1),
        secure=False,
    )


@pytest.fixture
def request_session(manager: SessionManager) -> RequestSession:
    """Carrier around a fresh session that is already persisted."""
    session = Session()
    manager.save(session)
    return RequestSession(session=session, manager=manager, logger=structlog.get_logger("tests"))


@pytest.fixture
def config() -> Config:
    return Config(
        database_url="mongodb://localhost:27017/ntumiwa_test",
        session_secret_key=SECRET_HEX,
        app_env="test",
    )


@pytest.fixture
def users() -> InMemoryUserService:
    return InMemoryUserService({"alice": "correct-horse", "bob": "battery-staple"})


@pytest.fixture
def app_instance(monkeypatch: pytest.MonkeyPatch, config: Config, users: InMemoryUserService) -> App:
    """App wired to a mocked MongoDB client and the in-memory user directory."""
    monkeypatch.setattr("ntumiwa.core.core.AsyncMongoClient", MagicMock())
    app = App(config)
    app._core.services.user = users  # type: ignore[assignment]
    return app


@pytest.fixture
def fastapi_app(app_instance: App, config: Config) -> FastAPI:
    return create_fastapi_app(app_instance, config)


@pytest.fixture
def client(fastapi_app: FastAPI) -> TestClient:
    # Not entered as a context manager: the lifespan (MongoDB startup) is skipped
    return TestClient(fastapi_app)
