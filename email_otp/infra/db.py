from psycopg2.pool import ThreadedConnectionPool

from shared.runtime_config import normalize_database_url

from ..runtime_config import database_url


def get_connection_pool(
    url: str | None = None,
    *,
    min_connections: int = 1,
    max_connections: int = 10,
) -> ThreadedConnectionPool:
    url = url or database_url()
    if not url:
        raise RuntimeError("DATABASE_URL is required to connect to Postgres")
    return ThreadedConnectionPool(
        min_connections,
        max_connections,
        normalize_database_url(url),
    )
