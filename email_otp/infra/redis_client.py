import redis

from ..runtime_config import redis_url


def get_redis_client(url: str | None = None) -> redis.Redis:
    url = url or redis_url()
    if not url:
        raise RuntimeError("REDIS_URL is required to connect to Redis")
    return redis.Redis.from_url(url, socket_timeout=5, socket_connect_timeout=5)
