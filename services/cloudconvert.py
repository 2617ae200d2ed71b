"""Async CloudConvert v2 client.

Thin boundary adapter over ``httpx``: every failure surfaced by this module is a
``RemoteServiceError`` with an explicit ``kind`` so callers never have to probe
response shapes themselves.
"""

import asyncio
import logging
from typing import Any, BinaryIO, Optional

import httpx
from pydantic import ValidationError

from config import CloudConvertConfig
from schemas.cloudconvert import RemoteJob, RemoteTask
from utils.status_machine import is_terminal, observe_transition

logger = logging.getLogger("api.cloudconvert")

ERROR_UNREACHABLE = "unreachable"
ERROR_TIMEOUT = "timeout"
ERROR_REJECTED = "rejected"
ERROR_RATE_LIMITED = "rate_limited"
ERROR_SERVER = "server_error"
ERROR_INVALID_RESPONSE = "invalid_response"

ERROR_KINDS = (
    ERROR_UNREACHABLE,
    ERROR_TIMEOUT,
    ERROR_REJECTED,
    ERROR_RATE_LIMITED,
    ERROR_SERVER,
    ERROR_INVALID_RESPONSE,
)

_RETRYABLE_KINDS = {ERROR_UNREACHABLE, ERROR_TIMEOUT, ERROR_RATE_LIMITED, ERROR_SERVER}


class RemoteServiceError(Exception):
    def __init__(
        self,
        kind: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE_KINDS

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


def _response_details(response: httpx.Response) -> tuple[str, Optional[str], Optional[str]]:
    message = response.reason_phrase or f"HTTP {response.status_code}"
    code = None
    details = None
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return message, code, text[:500] or None

    if isinstance(body, dict):
        message = str(body.get("message") or message)
        code = str(body["code"]) if body.get("code") else None
        errors = body.get("errors")
        if errors:
            details = str(errors)[:500]
    return message, code, details


def classify_response(response: httpx.Response) -> RemoteServiceError:
    message, code, details = _response_details(response)
    status = response.status_code

    if status == 429:
        kind = ERROR_RATE_LIMITED
    elif status in (408, 504):
        kind = ERROR_TIMEOUT
    elif status >= 500:
        kind = ERROR_SERVER
    else:
        kind = ERROR_REJECTED

    return RemoteServiceError(kind, message, status_code=status, code=code, details=details)


def classify_transport_error(exc: httpx.HTTPError) -> RemoteServiceError:
    if isinstance(exc, httpx.TimeoutException):
        return RemoteServiceError(ERROR_TIMEOUT, f"Request timed out: {exc.__class__.__name__}")
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_response(exc.response)
    return RemoteServiceError(ERROR_UNREACHABLE, f"Remote service unreachable: {exc.__class__.__name__}: {exc}")


class CloudConvertClient:
    """One client per conversion call; use as ``async with CloudConvertClient(cfg) as api``."""

    def __init__(self, config: CloudConvertConfig, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._config = config
        self._http = httpx.AsyncClient(
            timeout=config.http_timeout_sec,
            transport=transport,
            follow_redirects=False,
        )

    async def __aenter__(self) -> "CloudConvertClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Accept": "application/json",
        }

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise classify_transport_error(exc) from exc
        if response.is_error:
            raise classify_response(response)
        return response

    async def _job_request(self, method: str, url: str, **kwargs: Any) -> RemoteJob:
        response = await self._send(method, url, headers=self._auth_headers(), **kwargs)
        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteServiceError(
                ERROR_INVALID_RESPONSE,
                "Remote service returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise RemoteServiceError(
                ERROR_INVALID_RESPONSE,
                "Remote service response has no job data",
                status_code=response.status_code,
            )
        try:
            return RemoteJob.model_validate(data)
        except ValidationError as exc:
            raise RemoteServiceError(
                ERROR_INVALID_RESPONSE,
                "Remote job payload did not match the expected shape",
                status_code=response.status_code,
                details=str(exc)[:500],
            ) from exc

    async def create_job(self, tasks: dict[str, dict], *, tag: Optional[str] = None) -> RemoteJob:
        payload: dict[str, Any] = {"tasks": tasks}
        if tag:
            payload["tag"] = tag
        return await self._job_request("POST", f"{self._config.api_url}/v2/jobs", json=payload)

    async def get_job(self, job_id: str) -> RemoteJob:
        return await self._job_request("GET", f"{self._config.api_url}/v2/jobs/{job_id}")

    async def upload_to_task(self, task: RemoteTask, stream: BinaryIO, filename: str) -> None:
        form = task.result.form if task.result else None
        if form is None or not form.url:
            raise RemoteServiceError(ERROR_INVALID_RESPONSE, f"Task '{task.name}' has no upload form")

        data = {key: str(value) for key, value in form.parameters.items()}
        files = {"file": (filename, stream)}
        await self._send("POST", form.url, data=data, files=files)

    async def wait_for_job(self, job_id: str) -> RemoteJob:
        """Re-issue the blocking wait endpoint until the job is finished or failed."""
        url = f"{self._config.sync_api_url}/v2/jobs/{job_id}"
        # the sync endpoint holds the connection open while the job runs
        hold_timeout = httpx.Timeout(self._config.http_timeout_sec, read=None)
        previous: Optional[str] = None
        retries_used = 0

        while True:
            try:
                job = await self._job_request("GET", url, timeout=hold_timeout)
            except RemoteServiceError as exc:
                if not exc.retryable or retries_used >= self._config.wait_retries:
                    raise
                retries_used += 1
                delay = self._config.retry_backoff_sec * (2 ** (retries_used - 1))
                logger.warning(
                    "cloudconvert_wait_retry job_id=%s attempt=%s delay_sec=%s kind=%s error=%s",
                    job_id,
                    retries_used,
                    delay,
                    exc.kind,
                    exc,
                )
                await asyncio.sleep(delay)
                continue

            observe_transition(job_id=job_id, previous=previous, current=job.status, context="CLOUDCONVERT_WAIT")
            previous = job.status
            if is_terminal(job.status):
                return job
            await asyncio.sleep(self._config.poll_interval_sec)

    async def download(self, url: str) -> bytes:
        response = await self._send("GET", url, follow_redirects=True)
        return response.content
