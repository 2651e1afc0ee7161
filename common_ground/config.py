"""Configuration for Common Ground."""

import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

# Defaults
DEFAULT_PRESENCE_GRACE_SECONDS = 5.0
DEFAULT_MAX_STATEMENT_LENGTH = 500
DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8001


def _get_float_env(name: str, default: float) -> float:
    """Read a non-negative float from the environment, falling back to default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid value for %s: %r, using %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Negative value for %s: %r, using %s", name, raw, default)
        return default
    return value


def _get_int_env(name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid value for %s: %r, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive value for %s: %r, using %s", name, raw, default)
        return default
    return value


# Delay before a disconnect is treated as a permanent departure
PRESENCE_GRACE_SECONDS = _get_float_env(
    "COMMON_GROUND_PRESENCE_GRACE_SECONDS", DEFAULT_PRESENCE_GRACE_SECONDS
)

# Longest statement text accepted over the wire
MAX_STATEMENT_LENGTH = _get_int_env(
    "COMMON_GROUND_MAX_STATEMENT_LENGTH", DEFAULT_MAX_STATEMENT_LENGTH
)

# Allowed browser origins for the REST API
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("COMMON_GROUND_CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
    if origin.strip()
]

# Server bind address
HOST = os.getenv("COMMON_GROUND_HOST", DEFAULT_HOST)
PORT = _get_int_env("COMMON_GROUND_PORT", DEFAULT_PORT)
