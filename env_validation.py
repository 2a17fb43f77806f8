"""Environment variable validation and management."""

import os
import logging
from typing import Dict, List

logger = logging.getLogger(__name__)

_DEFAULT_JWT_SECRET = "dev-secret"


class EnvironmentError(Exception):
    """Raised when required environment variables are missing or invalid."""
    pass


def validate_environment() -> None:
    """Validate configuration environment variables.

    Raises EnvironmentError if validation fails.
    """
    # Every setting has a development fallback; only malformed values fail.
    defaults = {
        "DB_PATH": "data.db",
        "JWT_SECRET": _DEFAULT_JWT_SECRET,
        "TOKEN_TTL_DAYS": "7",
        "CORS_ORIGINS": "*",
        "SEED_USERS": "1",
    }

    # Apply defaults before validation so dependent modules see consistent values.
    for var, value in defaults.items():
        if not os.getenv(var):
            os.environ[var] = value
            if var == "JWT_SECRET":
                logger.warning("JWT_SECRET not set; tokens are signed with an insecure development key")
            else:
                logger.info("Environment variable %s not set; using default '%s'", var, value)

    ttl = os.environ["TOKEN_TTL_DAYS"]
    try:
        ttl_days = int(ttl)
    except ValueError:
        raise EnvironmentError(f"Invalid integer for TOKEN_TTL_DAYS: {ttl}") from None
    if ttl_days <= 0:
        raise EnvironmentError(f"TOKEN_TTL_DAYS must be positive, got {ttl_days}")

    optional_vars: Dict[str, str] = {
        "SEED_ADMIN_PASSWORD": "Password of the seeded administrator account",
        "SEED_USER_PASSWORD": "Password of the seeded sample user account",
    }
    if get_env_bool("SEED_USERS", True):
        for var, description in optional_vars.items():
            if not os.getenv(var):
                logger.warning(f"Optional environment variable not set: {var} ({description})")


def get_env_bool(name: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on", "enabled"}


def get_env_int(name: str, default: int) -> int:
    """Get integer value from environment variable, falling back on bad input."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer value for %s: %r", name, value)
        return default


def jwt_secret() -> str:
    return os.getenv("JWT_SECRET") or _DEFAULT_JWT_SECRET


def cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS") or "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
