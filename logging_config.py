"""
Logging setup for the service.

``setup_logging`` attaches a single console handler to the root logger.
Modules obtain their own logger with ``logging.getLogger(__name__)``.
"""

import logging
import sys


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once.

    Repeated calls (tests, several ``create_app`` calls) are no-ops once a
    handler is attached.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # Driver heartbeat/topology chatter
    logging.getLogger("pymongo").setLevel(logging.WARNING)
