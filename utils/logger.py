import logging
import sys
from typing import Optional

LOGGER_NAME = "spotify_mcp"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Between INFO and WARNING so successes stand out without being warnings.
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_logger = logging.getLogger(LOGGER_NAME)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure root logging on stderr (stdout carries the JSON-RPC stream)."""

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO, including full URLs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def log_debug(message: str) -> None:
    _logger.debug(message)


def log_info(message: str) -> None:
    _logger.info(message)


def log_success(message: str) -> None:
    _logger.log(SUCCESS, message)


def log_warning(message: str) -> None:
    _logger.warning(message)


def log_error(message: str, *, exc_info: bool = False) -> None:
    _logger.error(message, exc_info=exc_info)
