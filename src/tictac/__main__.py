"""Entry point for running tictac via ``python -m tictac``."""

from __future__ import annotations

import uvicorn

from .config import load_settings
from .logging_setup import setup_logging


def main() -> None:
    """Start the FastAPI-powered tic-tac-toe web server."""

    settings = load_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        "tictac.ui:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
