"""
API Module Entry Point

Allows execution via: python -m services.api

Runs the HTTP server and the in-process refresher on settings.PORT.
"""

import uvicorn

from services.api.app import create_app
from utils.config import settings
from utils.logging import setup_logging


def main() -> None:
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    app = create_app(settings)
    uvicorn.run(app, host=settings.API_HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
