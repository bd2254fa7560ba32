import logging
import os
from typing import Optional

# Libraries that are chatty at DEBUG/INFO and never carry workflow events.
_QUIET_LOGGERS = ("multipart", "python_multipart", "slowapi")


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging once for the gatekeeper and its CLI scripts."""
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("gatekeeper").setLevel(resolved)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
