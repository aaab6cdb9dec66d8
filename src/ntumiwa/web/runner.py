"""Uvicorn server runner."""

import uvicorn

from ntumiwa.app import App
from ntumiwa.config import Config
from ntumiwa.web.server import create_fastapi_app


def run_server(app: App, config: Config) -> None:
    """Run the Uvicorn server; logging is already configured through structlog."""
    fastapi_app = create_fastapi_app(app, config)
    uvicorn.run(fastapi_app, host=config.host, port=config.port, log_config=None, access_log=False)
