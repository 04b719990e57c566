import logging

from syllabus_parser.core.config import settings


def get_logger(name: str = "syllabus-parser") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(settings.LOG_LEVEL.upper())

    # Avoid duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            settings.LOG_FORMAT,
            datefmt = "%H:%M:%S"  # Only time: HH:MM:SS
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
