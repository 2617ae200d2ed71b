from fastapi import APIRouter

from services.feature_flags import is_conversion_log_enabled
from services.redis_client import ping_redis
from utils.metrics import snapshot

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    if not is_conversion_log_enabled():
        return {"status": "OK", "redis": "disabled"}
    probe = ping_redis()
    return {
        "status": "OK" if probe["ok"] else "DEGRADED",
        "redis": "connected" if probe["ok"] else "unavailable",
    }


@router.get("/metrics")
def metrics():
    return snapshot()
