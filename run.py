"""Entry point that serves the marketplace API with Uvicorn.

Host and port are read from the environment variables ``API_HOST`` and
``API_PORT`` (defaults ``0.0.0.0`` and ``8000``).  Other configuration
(``DATABASE_URL``, ``SECRET_KEY``, ...) is read by the application
itself, see ``booking_marketplace_api/app/core/config.py``.

Usage:
    python run.py
"""
import logging
import os

from uvicorn import Config, Server

from booking_marketplace_api.app.core.config import settings
from booking_marketplace_api.app.main import app


def main() -> None:
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    logging.getLogger(__name__).info("Serving on %s:%s", host, port)
    server.run()


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        pass
