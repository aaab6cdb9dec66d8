from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from ntumiwa.config import Config
from ntumiwa.core.modules.session.csrf import CSRF_HEADER


def set_custom_openapi(app: FastAPI, config: Config) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Ntumiwa API",
            version="0.1.0",
            summary="Concert catalogue backend: events, programmes, pieces, composers and venues",
            routes=app.routes,
        )

        # Add security schemes
        components = openapi_schema.setdefault("components", {})
        components["securitySchemes"] = {
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": config.session_cookie_name,
                "description": "Signed server-side session cookie, issued on every response",
            },
            "CsrfToken": {
                "type": "apiKey",
                "in": "header",
                "name": CSRF_HEADER,
                "description": "Per-session CSRF token, required on POST/PUT/PATCH/DELETE "
                "(or the 'csrf_token' form field)",
            },
        }

        # Apply security globally (will be overridden for public endpoints)
        openapi_schema["security"] = [{"SessionCookie": [], "CsrfToken": []}]

        # Remove security from public endpoints
        public_endpoints = {
            ("GET", "/api/v1/auth/login"),
            ("POST", "/api/v1/auth/login"),
            ("GET", "/api/v1/performances"),
            ("GET", "/health"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid username or password", "type": "authentication_error"},
                {"message": "Event not found", "type": "not_found"},
                {"message": "CSRF token mismatch", "type": "access_denied"},
                {"message": "'published' event is immutable; move it back to draft first", "type": "conflict"},
            ]
        }
    }
