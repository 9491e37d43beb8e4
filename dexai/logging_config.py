"""Process-wide logging setup shared by the HTTP and CLI adapters.

Library modules only create module loggers via `logging.getLogger(__name__)`;
handlers and formatting are applied once here by the entry points.
"""

import logging

from dexai import config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Apply the shared log format and level once per process.

    Args:
        level: Level name override; defaults to `config.LOG_LEVEL`.

    Edge cases:
        - Unknown level names fall back to `INFO`.
        - Repeated calls only adjust the root level.
    """
    global _configured

    level_name = (level or config.LOG_LEVEL or "INFO").upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if not _configured:
        logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
        _configured = True

    logging.getLogger().setLevel(numeric_level)
