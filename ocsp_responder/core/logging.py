import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

from ocsp_responder.core.config import Settings

FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Named logger for the application
logger = logging.getLogger("ocsp_responder")
logger.propagate = False  # avoid double logging if root logger is configured elsewhere


def configure_logging(settings: Settings) -> logging.Logger:
    """
    Attach console (and optionally rotating file) handlers to the application logger.
    Calling this more than once only updates the level.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(FORMAT)

    # Console handler
    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    # Rotating file handler (only when a log file is configured)
    if settings.LOG_FILE:
        Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            settings.LOG_FILE,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Return the application logger or a child logger.
    Usage:
        log = get_logger("services.responder")
    """
    if not name:
        return logger
    if name.startswith("ocsp_responder."):
        name = name[len("ocsp_responder."):]
    return logger.getChild(name)


__all__ = ["logger", "get_logger", "configure_logging"]
