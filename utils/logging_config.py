"""
Logging setup shared by the API, the CLI and scripts.
"""

import logging
from typing import Optional

from config.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "sqlalchemy.engine")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once. Later calls only adjust the level."""
    level_name = (level or settings.LOG_LEVEL or "INFO").upper()
    root = logging.getLogger()

    if not root.handlers:
        logging.basicConfig(level=level_name, format=LOG_FORMAT)
    root.setLevel(level_name)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
