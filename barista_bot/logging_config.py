"""
Logging configuration for the barista bot service.

create_app() calls setup_logging() once. Only the barista_bot loggers follow
LOG_LEVEL; loggers that write a line per request stay at WARNING unless the
service runs at DEBUG.

Environment variables:
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL (default: INFO)
    LOG_FORMAT: "detailed" (default) or "compact" for kiosk consoles
"""
import logging
import os
import sys

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

FORMATS = {
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "compact": "%(levelname).1s %(name)s: %(message)s",
}

# One line per request or connection
NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "slowapi")


def resolve_level(level: str | None = None) -> str:
    """Level name from the argument or LOG_LEVEL; unknown names fall back to INFO."""
    name = (level or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    return name if name in VALID_LEVELS else "INFO"


def resolve_format(style: str | None = None) -> str:
    name = (style or os.getenv("LOG_FORMAT", "detailed")).strip().lower()
    return FORMATS.get(name, FORMATS["detailed"])


def setup_logging(level: str | None = None, style: str | None = None) -> str:
    """
    Configure logging for the service.

    Args:
        level: Level name; LOG_LEVEL when omitted
        style: Key of FORMATS; LOG_FORMAT when omitted

    Returns:
        The level name that was applied
    """
    level = resolve_level(level)
    numeric_level = getattr(logging, level)

    logging.basicConfig(
        level=numeric_level,
        format=resolve_format(style),
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    logging.getLogger("barista_bot").setLevel(numeric_level)

    # NOTSET hands the noisy loggers back to the root level
    noisy_level = logging.NOTSET if level == "DEBUG" else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    logging.getLogger(__name__).debug("Logging configured at %s level", level)
    return level
