# User value: This file turns an uploaded document into the requested format through CloudConvert,
# and tells the user exactly which step failed when it does not work.
import asyncio
import logging
import os
import time
import uuid
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from config import CloudConvertConfig
from schemas.cloudconvert import RemoteJob
from schemas.conversion_contract import (
    REMOTE_STATUS_ERROR,
    REMOTE_STATUS_FINISHED,
    STAGE_DOWNLOAD,
    STAGE_EXPORT_MISSING,
    STAGE_JOB_CREATION,
    STAGE_REMOTE_PROCESSING,
    STAGE_UPLOAD,
    TASK_CONVERT,
    TASK_EXPORT,
    TASK_IMPORT,
    TOOL_DOCUMENT,
    normalize_format,
)
from services.cloudconvert import CloudConvertClient, RemoteServiceError
from services.temp_storage import TempFileStore
from utils.metrics import incr, observe_ms
from utils.stage_logging import log_stage

logger = logging.getLogger("api.conversion")

UNKNOWN_REMOTE_ERROR = "Unknown error"


class ConversionFailure(Exception):
    def __init__(self, stage: str, cause: str, *, job_id: Optional[str] = None, details: Optional[str] = None):
        super().__init__(f"{stage}: {cause}")
        self.stage = stage
        self.cause = cause
        self.job_id = job_id
        self.details = details


@dataclass(frozen=True)
class ConversionRequest:
    payload: bytes
    original_file_name: str
    target_format: str

    def __post_init__(self):
        object.__setattr__(self, "target_format", normalize_format(self.target_format))


@dataclass(frozen=True)
class ConversionResult:
    content: bytes
    file_name: str


def build_job_tasks(target_format: str) -> dict[str, dict]:
    return {
        TASK_IMPORT: {"operation": "import/upload"},
        TASK_CONVERT: {
            "operation": "convert",
            "input": TASK_IMPORT,
            "output_format": target_format,
        },
        TASK_EXPORT: {
            "operation": "export/url",
            "input": TASK_CONVERT,
            "inline": False,
        },
    }


def fallback_file_name(original_file_name: str, target_format: str) -> str:
    stem = os.path.splitext(os.path.basename(original_file_name or ""))[0] or "converted"
    return f"{stem}.{target_format}"


# User value: surfaces the remote service's own words so users know why a conversion was refused.
def remote_failure_cause(job: RemoteJob) -> str:
    failed = job.first_failed_task()
    if failed is not None and failed.message:
        return failed.message
    if job.message:
        return job.message
    return UNKNOWN_REMOTE_ERROR


def resolve_export(job: RemoteJob, request: ConversionRequest) -> tuple[str, str]:
    """Return ``(download_url, file_name)`` from the finished export task.

    Raises ``ConversionFailure`` tagged ``export-missing`` when the export task
    is absent, unfinished, carries no files, or its first file has no URL.
    """
    export = job.task(TASK_EXPORT)
    if export is None:
        raise ConversionFailure(STAGE_EXPORT_MISSING, "Export task not found in job", job_id=job.id)
    if str(export.status or "").lower() != REMOTE_STATUS_FINISHED:
        raise ConversionFailure(
            STAGE_EXPORT_MISSING,
            f"Export task did not finish (status={export.status})",
            job_id=job.id,
        )

    files = export.result.files if export.result else []
    if not files:
        raise ConversionFailure(STAGE_EXPORT_MISSING, "Export task returned no files", job_id=job.id)

    first = files[0]
    if not first.url:
        raise ConversionFailure(STAGE_EXPORT_MISSING, "Export file has no download URL", job_id=job.id)

    file_name = first.filename or fallback_file_name(request.original_file_name, request.target_format)
    return first.url, file_name


def _staging_failed(job_id: str, exc: OSError) -> ConversionFailure:
    return ConversionFailure(
        STAGE_UPLOAD,
        f"Could not stage upload payload: {exc.__class__.__name__}: {exc}",
        job_id=job_id,
    )


class ConversionOrchestrator:
    def __init__(
        self,
        config: CloudConvertConfig,
        *,
        temp_store: Optional[TempFileStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client_factory: Optional[Callable[..., CloudConvertClient]] = None,
    ):
        self._config = config
        self._temp_store = temp_store or TempFileStore()
        self._transport = transport
        self._client_factory = client_factory or CloudConvertClient

    async def convert(self, request: ConversionRequest) -> ConversionResult:
        call_id = f"call-{uuid.uuid4().hex}"
        started = time.perf_counter()
        log_stage(
            job_id=call_id,
            stage="DOCUMENT_CONVERSION",
            event="STARTED",
            tool=TOOL_DOCUMENT,
            filename=request.original_file_name,
            target_format=request.target_format,
            input_size_bytes=len(request.payload),
        )
        try:
            result = await self._run(request, call_id)
        except ConversionFailure as exc:
            incr("conversion_failures_total", tool=TOOL_DOCUMENT, stage=exc.stage)
            log_stage(
                job_id=exc.job_id or call_id,
                stage="DOCUMENT_CONVERSION",
                event="FAILED",
                tool=TOOL_DOCUMENT,
                filename=request.original_file_name,
                failed_stage=exc.stage,
                error=exc.cause,
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000.0
        incr("conversion_completed_total", tool=TOOL_DOCUMENT, target_format=request.target_format)
        observe_ms("conversion_latency_ms", duration_ms, tool=TOOL_DOCUMENT)
        log_stage(
            job_id=call_id,
            stage="DOCUMENT_CONVERSION",
            event="COMPLETED",
            tool=TOOL_DOCUMENT,
            filename=result.file_name,
            output_size_bytes=len(result.content),
            duration_ms=round(duration_ms, 1),
        )
        return result

    async def _run(self, request: ConversionRequest, call_id: str) -> ConversionResult:
        async with self._client_factory(self._config, transport=self._transport) as api:
            job = await self._create_job(api, request, call_id)
            with ExitStack() as scope:
                try:
                    path = scope.enter_context(
                        self._temp_store.scoped_file(request.payload, request.original_file_name)
                    )
                except OSError as exc:
                    raise _staging_failed(job.id, exc) from exc
                await self._upload(api, job, path, request)
                finished = await self._wait(api, job.id)
                url, file_name = self._resolve(finished, request)
                content = await self._download(api, job.id, url)
        return ConversionResult(content=content, file_name=file_name)

    async def _create_job(self, api: CloudConvertClient, request: ConversionRequest, call_id: str) -> RemoteJob:
        log_stage(job_id=call_id, stage=STAGE_JOB_CREATION, event="STARTED", tool=TOOL_DOCUMENT)
        try:
            job = await api.create_job(build_job_tasks(request.target_format), tag=call_id)
        except RemoteServiceError as exc:
            log_stage(
                job_id=call_id,
                stage=STAGE_JOB_CREATION,
                event="FAILED",
                tool=TOOL_DOCUMENT,
                error=str(exc),
                error_kind=exc.kind,
            )
            raise ConversionFailure(
                STAGE_JOB_CREATION,
                f"Failed to create CloudConvert job: {exc}",
                details=exc.details,
            ) from exc

        log_stage(job_id=job.id, stage=STAGE_JOB_CREATION, event="COMPLETED", tool=TOOL_DOCUMENT, call_id=call_id)
        return job

    async def _upload(self, api: CloudConvertClient, job: RemoteJob, path: str, request: ConversionRequest) -> None:
        import_task = job.task(TASK_IMPORT)
        if import_task is None:
            raise ConversionFailure(STAGE_UPLOAD, "Import task not found in job", job_id=job.id)

        upload_name = os.path.basename(request.original_file_name or "") or os.path.basename(path)
        log_stage(job_id=job.id, stage=STAGE_UPLOAD, event="STARTED", tool=TOOL_DOCUMENT, filename=upload_name)
        try:
            stream = open(path, "rb")
        except OSError as exc:
            log_stage(job_id=job.id, stage=STAGE_UPLOAD, event="FAILED", error=str(exc))
            raise _staging_failed(job.id, exc) from exc
        try:
            with stream:
                await api.upload_to_task(import_task, stream, upload_name)
        except RemoteServiceError as exc:
            log_stage(job_id=job.id, stage=STAGE_UPLOAD, event="FAILED", error=str(exc), error_kind=exc.kind)
            raise ConversionFailure(
                STAGE_UPLOAD,
                f"Failed to upload file to CloudConvert: {exc}",
                job_id=job.id,
                details=exc.details,
            ) from exc
        log_stage(job_id=job.id, stage=STAGE_UPLOAD, event="COMPLETED", tool=TOOL_DOCUMENT)

    async def _wait(self, api: CloudConvertClient, job_id: str) -> RemoteJob:
        log_stage(job_id=job_id, stage=STAGE_REMOTE_PROCESSING, event="STARTED", tool=TOOL_DOCUMENT)
        bound = self._config.wait_timeout_sec
        try:
            if bound and bound > 0:
                job = await asyncio.wait_for(api.wait_for_job(job_id), timeout=bound)
            else:
                job = await api.wait_for_job(job_id)
        except asyncio.TimeoutError as exc:
            cause = f"Timed out after {bound:g}s waiting for CloudConvert job"
            log_stage(job_id=job_id, stage=STAGE_REMOTE_PROCESSING, event="FAILED", error=cause)
            raise ConversionFailure(STAGE_REMOTE_PROCESSING, cause, job_id=job_id) from exc
        except RemoteServiceError as exc:
            log_stage(
                job_id=job_id,
                stage=STAGE_REMOTE_PROCESSING,
                event="FAILED",
                error=str(exc),
                error_kind=exc.kind,
            )
            raise ConversionFailure(
                STAGE_REMOTE_PROCESSING,
                f"Failed while waiting for CloudConvert job: {exc}",
                job_id=job_id,
                details=exc.details,
            ) from exc

        if str(job.status).lower() == REMOTE_STATUS_ERROR:
            cause = remote_failure_cause(job)
            failed = job.first_failed_task()
            log_stage(
                job_id=job_id,
                stage=STAGE_REMOTE_PROCESSING,
                event="FAILED",
                error=cause,
                failed_task=failed.name if failed else None,
                remote_code=failed.code if failed else None,
            )
            raise ConversionFailure(
                STAGE_REMOTE_PROCESSING,
                f"CloudConvert job failed: {cause}",
                job_id=job_id,
                details=failed.code if failed else None,
            )

        log_stage(job_id=job_id, stage=STAGE_REMOTE_PROCESSING, event="COMPLETED", tool=TOOL_DOCUMENT)
        return job

    def _resolve(self, job: RemoteJob, request: ConversionRequest) -> tuple[str, str]:
        try:
            return resolve_export(job, request)
        except ConversionFailure as exc:
            log_stage(job_id=job.id, stage=STAGE_EXPORT_MISSING, event="FAILED", error=exc.cause)
            raise

    async def _download(self, api: CloudConvertClient, job_id: str, url: str) -> bytes:
        log_stage(job_id=job_id, stage=STAGE_DOWNLOAD, event="STARTED", tool=TOOL_DOCUMENT)
        try:
            content = await api.download(url)
        except RemoteServiceError as exc:
            log_stage(job_id=job_id, stage=STAGE_DOWNLOAD, event="FAILED", error=str(exc), error_kind=exc.kind)
            raise ConversionFailure(
                STAGE_DOWNLOAD,
                f"Failed to download converted file: {exc}",
                job_id=job_id,
                details=exc.details,
            ) from exc

        if not content:
            log_stage(job_id=job_id, stage=STAGE_DOWNLOAD, event="FAILED", error="empty body")
            raise ConversionFailure(STAGE_DOWNLOAD, "Downloaded file is empty", job_id=job_id)

        log_stage(
            job_id=job_id,
            stage=STAGE_DOWNLOAD,
            event="COMPLETED",
            tool=TOOL_DOCUMENT,
            output_size_bytes=len(content),
        )
        return content
