import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from posdesk.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging() -> logging.Logger:
    """
    Configure the ``posdesk`` logger tree.

    Console output is always enabled. When ``LOG_FILE`` is set, a file handler
    rotating at midnight (seven backups) is added as well. Calling this more
    than once is harmless; handlers are only attached the first time.
    """
    logger = logging.getLogger("posdesk")
    logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=log_path,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info("Logging initialized (level=%s)", settings.log_level)
    return logger
