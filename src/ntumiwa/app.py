from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from ntumiwa.config import Config
from ntumiwa.core.core import Core
from ntumiwa.core.modules.composer.models import Composer
from ntumiwa.core.modules.event.models import EventListItem, EventStatus, EventView, PerformanceView
from ntumiwa.core.modules.event.validators import parse_status, parse_timeframe
from ntumiwa.core.modules.piece.models import PieceView
from ntumiwa.core.modules.programme.models import ProgrammeListItem, ProgrammePiece, ProgrammeView
from ntumiwa.core.modules.session.context import RequestSession
from ntumiwa.core.modules.session.manager import SessionManager
from ntumiwa.core.modules.session.models import USERNAME
from ntumiwa.core.modules.user.models import UserView
from ntumiwa.core.modules.venue.models import Venue
from ntumiwa.errors import AuthenticationError, ValidationError


class App:
    """Facade for all application operations, validates the session before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None, None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def session_manager(self) -> SessionManager:
        return self._core.session_manager

    # === Authentication ===
    def is_authenticated(self, ctx: RequestSession) -> bool:
        return self._core.services.access.is_authenticated(ctx.session)

    async def login(self, ctx: RequestSession, username: str, password: str) -> None:
        """Verify credentials and promote the session, migrating its id."""
        try:
            user = await self._core.services.user.verify_credentials(username, password)
        except AuthenticationError:
            ctx.logger.warning("login_failed", username=username)
            raise
        self._core.services.access.login(ctx, user.username)
        ctx.logger.info("login_succeeded", username=user.username)

    async def logout(self, ctx: RequestSession) -> bool:
        """Demote the session, migrating its id. Returns False if it was not authenticated."""
        if not self.is_authenticated(ctx):
            ctx.logger.info("logout_skipped_unauthenticated")
            return False
        username = ctx.session.get(USERNAME)
        self._core.services.access.logout(ctx)
        ctx.logger.info("logout_succeeded", username=username)
        return True

    async def get_current_username(self, ctx: RequestSession) -> str:
        return await self._core.services.access.ensure_authenticated(ctx)

    # === Users ===
    async def get_all_users(self, ctx: RequestSession) -> list[UserView]:
        await self._core.services.access.ensure_authenticated(ctx)
        users = await self._core.services.user.list_users()
        return [UserView.from_domain(user) for user in users]

    async def create_user(self, ctx: RequestSession, username: str, password: str) -> UserView:
        await self._core.services.access.ensure_authenticated(ctx)
        user = await self._core.services.user.create_user(username, password)
        return UserView.from_domain(user)

    async def delete_user(self, ctx: RequestSession, username: str) -> None:
        """Delete a user account (cannot delete yourself)."""
        current = await self._core.services.access.ensure_authenticated(ctx)
        if username == current:
            raise ValidationError("Cannot delete yourself")
        await self._core.services.user.delete_user(username)

    # === Composers ===
    async def get_composers(self, ctx: RequestSession) -> list[Composer]:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.composer.list_composers()

    async def get_composer(self, ctx: RequestSession, composer_id: UUID) -> Composer:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.composer.get_composer(composer_id)

    async def create_composer(self, ctx: RequestSession, short_name: str, full_name: str) -> Composer:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.composer.create_composer(short_name, full_name)

    async def update_composer(
        self, ctx: RequestSession, composer_id: UUID, short_name: str | None, full_name: str | None
    ) -> Composer:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.composer.update_composer(composer_id, short_name, full_name)

    async def delete_composer(self, ctx: RequestSession, composer_id: UUID) -> None:
        """Delete a composer and cascade to their pieces."""
        await self._core.services.access.ensure_authenticated(ctx)
        await self._core.services.composer.delete_composer(composer_id)

    # === Pieces ===
    async def get_pieces(self, ctx: RequestSession, composer_id: UUID | None = None) -> list[PieceView]:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.piece.list_pieces(composer_id)

    async def get_piece(self, ctx: RequestSession, piece_id: UUID) -> PieceView:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.piece.get_piece_view(piece_id)

    async def create_piece(self, ctx: RequestSession, title: str, composer_id: UUID) -> PieceView:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.piece.create_piece(title, composer_id)

    async def update_piece(
        self, ctx: RequestSession, piece_id: UUID, title: str | None, composer_id: UUID | None
    ) -> PieceView:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.piece.update_piece(piece_id, title, composer_id)

    async def delete_piece(self, ctx: RequestSession, piece_id: UUID) -> None:
        await self._core.services.access.ensure_authenticated(ctx)
        await self._core.services.piece.delete_piece(piece_id)

    # === Venues ===
    async def get_venues(self, ctx: RequestSession) -> list[Venue]:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.venue.list_venues()

    async def get_venue(self, ctx: RequestSession, venue_id: UUID) -> Venue:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.venue.get_venue(venue_id)

    async def create_venue(self, ctx: RequestSession, address: str) -> Venue:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.venue.create_venue(address)

    async def update_venue(self, ctx: RequestSession, venue_id: UUID, address: str) -> Venue:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.venue.update_venue(venue_id, address)

    async def delete_venue(self, ctx: RequestSession, venue_id: UUID) -> None:
        await self._core.services.access.ensure_authenticated(ctx)
        await self._core.services.venue.delete_venue(venue_id)

    # === Programmes ===
    async def get_programmes(self, ctx: RequestSession) -> list[ProgrammeListItem]:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.programme.list_programmes()

    async def get_programme(self, ctx: RequestSession, programme_id: UUID) -> ProgrammeView:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.programme.get_programme_view(programme_id)

    async def create_programme(self, ctx: RequestSession, title: str, pieces: list[ProgrammePiece]) -> ProgrammeView:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.programme.create_programme(title, pieces)

    async def update_programme(
        self, ctx: RequestSession, programme_id: UUID, title: str | None, pieces: list[ProgrammePiece] | None
    ) -> ProgrammeView:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.programme.update_programme(programme_id, title, pieces)

    async def delete_programme(self, ctx: RequestSession, programme_id: UUID) -> None:
        await self._core.services.access.ensure_authenticated(ctx)
        await self._core.services.programme.delete_programme(programme_id)

    # === Events ===
    async def get_events(
        self, ctx: RequestSession, timeframe: str | None = None, status: str | None = None
    ) -> list[EventListItem]:
        """List events, optionally filtered by timeframe and status."""
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.event.list_events(parse_timeframe(timeframe), parse_status(status))

    async def get_event(self, ctx: RequestSession, event_id: UUID) -> EventView:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.event.get_event_view(event_id)

    async def create_event(self, ctx: RequestSession, title: str, fields: dict[str, Any]) -> EventView:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.event.create_event(title, fields)

    async def update_event(self, ctx: RequestSession, event_id: UUID, changes: dict[str, Any]) -> EventView:
        """Update a draft event; keys absent from ``changes`` are left unchanged."""
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.event.update_event(event_id, changes)

    async def set_event_status(self, ctx: RequestSession, event_id: UUID, status: EventStatus) -> EventView:
        await self._core.services.access.ensure_authenticated(ctx)
        return await self._core.services.event.set_status(event_id, status)

    async def delete_event(self, ctx: RequestSession, event_id: UUID) -> None:
        await self._core.services.access.ensure_authenticated(ctx)
        await self._core.services.event.delete_event(event_id)

    # === Public ===
    async def get_performances(self, timeframe: str | None) -> list[PerformanceView]:
        """Published performances for the public site (no authentication)."""
        parsed = parse_timeframe(timeframe)
        if parsed is None:
            raise ValidationError("timeframe must be 'upcoming' or 'past'")
        return await self._core.services.event.list_performances(parsed)
