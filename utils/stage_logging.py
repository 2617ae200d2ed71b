import json
import logging
from datetime import datetime, timezone
from typing import Any

from utils.request_id import get_request_id

logger = logging.getLogger("api.stage")

STAGE_EVENTS = ("STARTED", "COMPLETED", "FAILED", "RETRYING")


def _norm(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return value
    return str(value)


def log_stage(
    *,
    job_id: str,
    stage: str,
    event: str,
    tool: str | None = None,
    filename: str | None = None,
    error: str | None = None,
    request_id: str | None = None,
    **extra: Any,
) -> dict:
    payload = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "job_id": job_id,
        "stage": stage.upper(),
        "event": event.upper(),
    }

    rid = request_id or get_request_id()
    if rid:
        payload["request_id"] = rid
    if tool:
        payload["tool"] = tool
    if filename:
        payload["filename"] = filename
    if error:
        payload["error"] = error

    for key, value in extra.items():
        norm = _norm(value)
        if norm is not None:
            payload[key] = norm

    msg = json.dumps(payload, ensure_ascii=False)
    if error or payload["event"] == "FAILED":
        logger.error("stage_event %s", msg)
    elif payload["event"] == "RETRYING":
        logger.warning("stage_event %s", msg)
    else:
        logger.info("stage_event %s", msg)
    return payload
