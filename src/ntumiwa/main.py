"""Application entry point for the ntumiwa API server."""

from ntumiwa.app import App
from ntumiwa.config import Config
from ntumiwa.logging import setup_logging
from ntumiwa.web.runner import run_server


def main() -> None:
    config = Config()  # type: ignore[call-arg]
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
