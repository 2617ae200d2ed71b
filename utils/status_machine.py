# User value: This file keeps remote job progress readable so stuck or odd conversions are easy to spot.
import logging
from typing import Optional

from schemas.conversion_contract import (
    REMOTE_STATUS_CREATED,
    REMOTE_STATUS_ERROR,
    REMOTE_STATUS_FINISHED,
    REMOTE_STATUS_PROCESSING,
    REMOTE_STATUS_WAITING,
    REMOTE_TERMINAL_STATUSES,
)

logger = logging.getLogger("api.status_machine")

_TERMINAL = set(REMOTE_TERMINAL_STATUSES)

_ALLOWED = {
    None: {
        REMOTE_STATUS_WAITING,
        REMOTE_STATUS_CREATED,
        REMOTE_STATUS_PROCESSING,
        REMOTE_STATUS_FINISHED,
        REMOTE_STATUS_ERROR,
    },
    REMOTE_STATUS_WAITING: {
        REMOTE_STATUS_WAITING,
        REMOTE_STATUS_CREATED,
        REMOTE_STATUS_PROCESSING,
        REMOTE_STATUS_FINISHED,
        REMOTE_STATUS_ERROR,
    },
    REMOTE_STATUS_CREATED: {
        REMOTE_STATUS_CREATED,
        REMOTE_STATUS_WAITING,
        REMOTE_STATUS_PROCESSING,
        REMOTE_STATUS_FINISHED,
        REMOTE_STATUS_ERROR,
    },
    REMOTE_STATUS_PROCESSING: {
        REMOTE_STATUS_PROCESSING,
        REMOTE_STATUS_FINISHED,
        REMOTE_STATUS_ERROR,
    },
    REMOTE_STATUS_FINISHED: {REMOTE_STATUS_FINISHED},
    REMOTE_STATUS_ERROR: {REMOTE_STATUS_ERROR},
}


# User value: This step keeps remote status comparisons stable regardless of casing.
def _norm(status: Optional[str]) -> Optional[str]:
    if status is None:
        return None
    s = str(status).strip().lower()
    return s or None


def is_terminal(status: Optional[str]) -> bool:
    return _norm(status) in _TERMINAL


# User value: This step flags remote status jumps that should never happen during a wait.
def is_allowed_transition(current: Optional[str], target: Optional[str]) -> bool:
    target_n = _norm(target)
    if not target_n:
        return True
    current_n = _norm(current)
    allowed = _ALLOWED.get(current_n, _ALLOWED[None])
    return target_n in allowed


# User value: records each observed status change so slow conversions can be traced afterwards.
def observe_transition(*, job_id: str, previous: Optional[str], current: Optional[str], context: str) -> bool:
    previous_n = _norm(previous)
    current_n = _norm(current)

    if not is_allowed_transition(previous_n, current_n):
        logger.warning(
            "remote_status_unexpected context=%s job_id=%s previous=%s current=%s",
            context,
            job_id,
            previous_n,
            current_n,
        )
        return False

    if previous_n != current_n:
        logger.info(
            "remote_status_changed context=%s job_id=%s previous=%s current=%s",
            context,
            job_id,
            previous_n,
            current_n,
        )
    return True
