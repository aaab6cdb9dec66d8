from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ntumiwa.app import App
from ntumiwa.config import Config
from ntumiwa.core.modules.session.csrf import CSRF_HEADER
from ntumiwa.errors import UserError
from ntumiwa.web.error_handlers import general_exception_handler, user_error_handler
from ntumiwa.web.openapi import set_custom_openapi
from ntumiwa.web.request_logging import RequestLogMiddleware
from ntumiwa.web.routers import (
    auth_router,
    composers_router,
    events_router,
    performances_router,
    pieces_router,
    programmes_router,
    users_router,
    venues_router,
)
from ntumiwa.web.session_middleware import SessionMiddleware


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Ntumiwa API",
        lifespan=lifespan,
        openapi_tags=[],  # Tags will be added by custom OpenAPI function
    )
    # Store app instance and config in app state
    app.state.app = app_instance
    app.state.config = config

    # Innermost first: the session middleware logs through the logger bound by RequestLogMiddleware
    app.add_middleware(SessionMiddleware, manager=app_instance.session_manager)
    app.add_middleware(RequestLogMiddleware)

    # Add CORS middleware for frontend development
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[CSRF_HEADER],
        )

    # Health check endpoint (at root level, not versioned)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    # API v1 routes
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(composers_router, prefix="/api/v1")
    app.include_router(pieces_router, prefix="/api/v1")
    app.include_router(venues_router, prefix="/api/v1")
    app.include_router(programmes_router, prefix="/api/v1")
    app.include_router(events_router, prefix="/api/v1")
    app.include_router(performances_router, prefix="/api/v1")

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app, config)

    return app
