"""Runtime configuration from environment variables, and logging setup."""

import logging
import os
import sys
from pathlib import Path

from .money import normalize_currency_code

DEFAULT_STATE_DIR = Path.home() / ".splitkit"
DEFAULT_CURRENCY = "USD"
DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_state_dir() -> Path:
    """State directory, respecting the SPLITKIT_HOME env var."""
    env_path = os.environ.get("SPLITKIT_HOME")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_STATE_DIR


def get_default_currency() -> str:
    """Currency for new groups, respecting the SPLITKIT_CURRENCY env var."""
    return normalize_currency_code(os.environ.get("SPLITKIT_CURRENCY", DEFAULT_CURRENCY))


def get_log_level() -> str:
    return os.environ.get("SPLITKIT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Calling this again updates the level and stream; it never stacks handlers.

    Args:
        level: Logging level name or number (default: SPLITKIT_LOG_LEVEL)

    Returns:
        The configured "splitkit" logger
    """
    logger = logging.getLogger("splitkit")
    logger.setLevel(level if level is not None else get_log_level())
    for handler in logger.handlers:
        if getattr(handler, "_splitkit", False):
            handler.setStream(sys.stderr)
            return logger
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._splitkit = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
