"""Environment-driven settings for chatpane."""

import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_TIMEOUT = 30.0


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


def get_backend_name() -> str:
    """Return the response service to use ("echo" or "openai")."""
    return os.environ.get("CHATPANE_BACKEND", "echo")


def get_poll_interval() -> float:
    """Return the delay in seconds between two reads of a response handle."""
    return _get_float("CHATPANE_POLL_INTERVAL", DEFAULT_POLL_INTERVAL)


def get_timeout() -> float:
    """Return the hard ceiling in seconds on one response generation."""
    return _get_float("CHATPANE_TIMEOUT", DEFAULT_TIMEOUT)


def get_api_base() -> str:
    return os.environ.get("CHATPANE_API_BASE", "https://api.openai.com/v1").rstrip("/")


def get_api_key() -> str | None:
    return os.environ.get("CHATPANE_API_KEY") or os.environ.get("OPENAI_API_KEY")


def get_model() -> str:
    return os.environ.get("CHATPANE_MODEL", "gpt-4o-mini")
