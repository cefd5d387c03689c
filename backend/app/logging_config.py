"""Process-wide logging setup."""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once (e.g. when tests build several apps); only the
    level is updated on later calls.

    Args:
        level: Log level name such as "INFO" or "DEBUG".
    """
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())

    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # httpx logs every request at INFO; keep provider traffic at our own logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True
