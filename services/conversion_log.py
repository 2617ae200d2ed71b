# User value: This file keeps a short history of successful conversions so recent activity can be reviewed.
import logging
import os
import uuid
from datetime import datetime, timezone

from redis.exceptions import RedisError

from config import CONVERSION_LOG_KEY, CONVERSION_LOG_MAX_ENTRIES
from services.feature_flags import is_conversion_log_enabled
from utils.metrics import incr

logger = logging.getLogger("api.conversion_log")

ENTRY_KEY_PREFIX = "conversion_log:"
ENTRY_FIELDS = (
    "id",
    "created_at",
    "updated_at",
    "original_file_name",
    "original_format",
    "target_format",
    "user_id",
    "tool",
    "status",
)


def entry_key(entry_id: str) -> str:
    return f"{ENTRY_KEY_PREFIX}{entry_id}"


def original_format_of(file_name: str | None) -> str:
    ext = os.path.splitext(str(file_name or "").strip())[1].lstrip(".").lower()
    return ext or "unknown"


def build_entry(
    *,
    original_file_name: str,
    target_format: str,
    tool: str,
    user_id: str | None = None,
    status: str = "completed",
) -> dict:
    now_ts = datetime.now(timezone.utc).isoformat()
    return {
        "id": uuid.uuid4().hex,
        "created_at": now_ts,
        "updated_at": now_ts,
        "original_file_name": original_file_name,
        "original_format": original_format_of(original_file_name),
        "target_format": str(target_format or "").lower(),
        "user_id": user_id or "",
        "tool": tool,
        "status": status,
    }


# User value: records a finished conversion without ever failing the user's download.
def record_conversion(
    *,
    r,
    original_file_name: str,
    target_format: str,
    tool: str,
    user_id: str | None = None,
) -> dict | None:
    if not is_conversion_log_enabled():
        return None

    entry = build_entry(
        original_file_name=original_file_name,
        target_format=target_format,
        tool=tool,
        user_id=user_id,
    )
    try:
        pipe = r.pipeline()
        pipe.hset(entry_key(entry["id"]), mapping=entry)
        pipe.lpush(CONVERSION_LOG_KEY, entry["id"])
        pipe.execute()

        keep = max(1, CONVERSION_LOG_MAX_ENTRIES)
        stale = r.lrange(CONVERSION_LOG_KEY, keep, -1) or []
        if stale:
            r.delete(*[entry_key(x) for x in stale])
            r.ltrim(CONVERSION_LOG_KEY, 0, keep - 1)
    except RedisError as exc:
        incr("conversion_log_write_failed_total", tool=tool)
        logger.warning(
            "conversion_log_write_failed tool=%s file=%s error=%s: %s",
            tool,
            original_file_name,
            exc.__class__.__name__,
            exc,
        )
        return None

    incr("conversion_log_written_total", tool=tool)
    return entry


def list_conversions(*, r, limit: int = 50) -> list[dict]:
    limit = max(1, min(int(limit), CONVERSION_LOG_MAX_ENTRIES))
    ids = r.lrange(CONVERSION_LOG_KEY, 0, limit - 1) or []
    entries = []
    for entry_id in ids:
        data = r.hgetall(entry_key(entry_id))
        if not data:
            continue
        entries.append({field: data.get(field) or None for field in ENTRY_FIELDS})
    return entries
