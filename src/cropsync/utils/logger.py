import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger("cropsync")
logger.setLevel(LOG_LEVEL)


def get_logger(name: str = None, level: str = None) -> logging.Logger:
    """
    Get a logger under the cropsync namespace.

    Args:
        name: Component name, e.g. "cache" -> "cropsync.cache"
        level: Optional level override (defaults to LOG_LEVEL)

    Returns:
        Logger with a stream handler attached once
    """
    log = logging.getLogger(f"cropsync.{name}" if name else "cropsync")
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
        log.propagate = False
    log.setLevel(level or LOG_LEVEL)
    return log
