# User value: This route lists recent successful conversions.
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from redis.exceptions import RedisError

from schemas.responses import ConversionLogEntry, ConversionLogResponse
from services.conversion_log import list_conversions
from services.feature_flags import is_conversion_log_enabled
from services.providers import feature_disabled, get_redis_client

router = APIRouter(tags=["history"])
logger = logging.getLogger("api.conversions")


@router.get("/conversions", response_model=ConversionLogResponse)
def conversions(limit: int = Query(default=50, ge=1, le=500), r=Depends(get_redis_client)):
    if not is_conversion_log_enabled():
        raise feature_disabled("Conversion log")
    try:
        rows = list_conversions(r=r, limit=limit)
    except RedisError as exc:
        logger.error("conversion_log_read_failed error=%s: %s", exc.__class__.__name__, exc)
        raise HTTPException(
            status_code=503,
            detail={"error_code": "CONVERSION_LOG_UNAVAILABLE", "error_message": "Conversion log is unavailable"},
        ) from exc

    entries = [ConversionLogEntry.model_validate(row) for row in rows]
    return ConversionLogResponse(entries=entries, count=len(entries))
