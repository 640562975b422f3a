import logging
import os


logger = logging.getLogger(__name__)


def env_str(name: str, default: str = "") -> str:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip()


def env_int(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r, using %s", name, raw, default)
        return default
    if minimum is not None and value < minimum:
        logger.warning("%s=%s is below %s, using %s", name, value, minimum, default)
        return default
    if maximum is not None and value > maximum:
        logger.warning("%s=%s is above %s, using %s", name, value, maximum, default)
        return default
    return value


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def normalize_database_url(database_url: str) -> str:
    dsn = database_url.replace("postgresql+psycopg2://", "postgresql://", 1)
    return dsn.replace("postgresql+psycopg://", "postgresql://", 1)
