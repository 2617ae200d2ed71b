import logging
import time
from functools import lru_cache

import redis
from redis.exceptions import RedisError

from config import REDIS_URL

# ---------------------------------------------------------
# LOGGING
# ---------------------------------------------------------
logger = logging.getLogger("api.redis")


# ---------------------------------------------------------
# REDIS INIT
# ---------------------------------------------------------
@lru_cache(maxsize=1)
def get_redis() -> redis.Redis:
    logger.info("[REDIS] Initializing Redis client")
    return redis.from_url(REDIS_URL, decode_responses=True)


# ---------------------------------------------------------
# CONNECTION DIAGNOSTICS
# ---------------------------------------------------------
def ping_redis(client=None) -> dict:
    client = client or get_redis()
    t0 = time.time()
    try:
        pong = client.ping()
    except RedisError as exc:
        logger.error("[REDIS] ping failed: %s", exc)
        return {"ok": False, "error": f"{exc.__class__.__name__}: {exc}"}
    ms = int((time.time() - t0) * 1000)
    return {"ok": bool(pong), "latency_ms": ms}
