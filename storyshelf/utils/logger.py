import sys
from loguru import logger
from pathlib import Path
from typing import Optional

_configured = False

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[category]: <10}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[category]} | {name}:{function}:{line} - {message}"


def setup_logger(log_level: str = "INFO", log_file: Optional[Path] = None):
    global _configured

    if _configured and log_file is None:
        return logger

    logger.remove()
    # Our formats need a category, even on records from the bare logger.
    logger.configure(extra={"category": "app"})

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=log_level,
        colorize=True,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
        )

    _configured = True
    return logger


def get_logger(category: str):
    """Return the shared logger bound to a category (repository, network, auth, ...)."""
    return logger.bind(category=category)
