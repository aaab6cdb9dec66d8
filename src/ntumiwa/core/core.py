from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from ntumiwa.config import Config
from ntumiwa.core.modules.session.manager import SessionManager

if TYPE_CHECKING:
    from ntumiwa.core.modules.access.service import AccessService
    from ntumiwa.core.modules.composer.service import ComposerService
    from ntumiwa.core.modules.event.service import EventService
    from ntumiwa.core.modules.piece.service import PieceService
    from ntumiwa.core.modules.programme.service import ProgrammeService
    from ntumiwa.core.modules.user.service import UserService
    from ntumiwa.core.modules.venue.service import VenueService


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that imports and initializes services in dependency order."""

    user: UserService
    access: AccessService
    composer: ComposerService
    piece: PieceService
    venue: VenueService
    programme: ProgrammeService
    event: EventService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._services: list[Service] = []
        self._database = database

        # (attribute_name, module_path, class_name); users first, the admin bootstrap runs before anything else
        service_configs = [
            ("user", "ntumiwa.core.modules.user.service", "UserService"),
            ("access", "ntumiwa.core.modules.access.service", "AccessService"),
            ("composer", "ntumiwa.core.modules.composer.service", "ComposerService"),
            ("piece", "ntumiwa.core.modules.piece.service", "PieceService"),
            ("venue", "ntumiwa.core.modules.venue.service", "VenueService"),
            ("programme", "ntumiwa.core.modules.programme.service", "ProgrammeService"),
            ("event", "ntumiwa.core.modules.event.service", "EventService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, session manager and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    session_manager: SessionManager
    services: Services

    def __init__(self, config: Config) -> None:
        self.config = config
        self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.session_manager = SessionManager.from_config(config)
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None, None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()
        self.session_manager.start_sweeper()

    async def on_stop(self) -> None:
        """Stop the session sweeper and services, then close the MongoDB connection."""
        await self.session_manager.stop_sweeper()
        await self.services.stop_all()
        await self.mongo_client.aclose()
