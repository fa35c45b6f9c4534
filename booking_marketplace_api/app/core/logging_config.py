"""
Root logger setup for the marketplace API.

Every module logs through ``logging.getLogger(__name__)``; this module
only decides where records go.  Records are written to stderr and,
when ``LOG_FILE`` is set, appended to that file as well.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Attach the console (and optional file) handler to the root logger.

    Does nothing when the root logger already has handlers, so calling
    it from both ``create_app`` and a test runner is harmless.  Unknown
    level names fall back to ``INFO``.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        path = Path(logfile).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    # One line per request from uvicorn is enough outside debug runs.
    if root.level > logging.DEBUG:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
