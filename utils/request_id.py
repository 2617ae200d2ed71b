import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
# Browsers and proxies may forward their own id; accept it only if it is log-safe.
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:-]{8,128}$")


def normalize_request_id(raw: str | None) -> str:
    candidate = (raw or "").strip()
    if _ACCEPTED_ID.match(candidate):
        return candidate
    return f"req-{uuid.uuid4().hex}"


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


@contextmanager
def request_scope(raw: str | None) -> Iterator[str]:
    """Bind a request id for the duration of one request and restore the previous one after."""
    token = _REQUEST_ID_CTX.set(normalize_request_id(raw))
    try:
        yield _REQUEST_ID_CTX.get()
    finally:
        _REQUEST_ID_CTX.reset(token)
