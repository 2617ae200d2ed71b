import itertools
import os
import tempfile
from contextlib import contextmanager

import httpx

from config import CloudConvertConfig
from services.temp_storage import TempFileStore

API = "https://api.cc.test"
SYNC = "https://sync.cc.test"
UPLOAD_HOST = "upload.cc.test"
FILES_HOST = "files.cc.test"


def make_config(**overrides) -> CloudConvertConfig:
    values = {
        "api_key": "test-key",
        "api_url": API,
        "sync_api_url": SYNC,
        "http_timeout_sec": 5.0,
        "wait_timeout_sec": 5.0,
        "poll_interval_sec": 0.0,
        "wait_retries": 0,
        "retry_backoff_sec": 0.0,
    }
    values.update(overrides)
    return CloudConvertConfig(**values)


def export_file(job_id: str, filename: str | None = "report.pdf") -> dict:
    item = {"url": f"https://{FILES_HOST}/{job_id}/output"}
    if filename is not None:
        item["filename"] = filename
    return item


def finished_job(job_id: str, files: list | None = None, export_status: str = "finished", with_export: bool = True) -> dict:
    tasks = [
        {"id": f"{job_id}-i", "name": "import", "operation": "import/upload", "status": "finished"},
        {"id": f"{job_id}-c", "name": "convert", "operation": "convert", "status": "finished"},
    ]
    if with_export:
        tasks.append(
            {
                "id": f"{job_id}-e",
                "name": "export",
                "operation": "export/url",
                "status": export_status,
                "result": {"files": [export_file(job_id)] if files is None else files},
            }
        )
    return {"id": job_id, "status": "finished", "tasks": tasks}


def failed_job(job_id: str, task_message: str | None = None, job_message: str | None = None) -> dict:
    convert = {"id": f"{job_id}-c", "name": "convert", "operation": "convert", "status": "error"}
    if task_message:
        convert["message"] = task_message
        convert["code"] = "INVALID_CONVERSION_TYPE"
    payload = {
        "id": job_id,
        "status": "error",
        "tasks": [
            {"id": f"{job_id}-i", "name": "import", "status": "finished"},
            convert,
            {"id": f"{job_id}-e", "name": "export", "status": "error"},
        ],
    }
    if job_message:
        payload["message"] = job_message
    return payload


def processing_job(job_id: str) -> dict:
    return {
        "id": job_id,
        "status": "processing",
        "tasks": [
            {"name": "import", "status": "finished"},
            {"name": "convert", "status": "processing"},
            {"name": "export", "status": "waiting"},
        ],
    }


class FakeCloudConvert:
    """In-memory stand-in for the CloudConvert API, upload form, wait endpoint and file storage."""

    def __init__(self):
        self._ids = itertools.count(1)
        self.requests: list[httpx.Request] = []
        self.created_jobs: list[str] = []
        self.created_payloads: list[bytes] = []
        self.uploads: dict[str, bytes] = {}
        self.downloads: list[str] = []
        self.wait_calls: dict[str, int] = {}

        self.create_response = None
        self.create_error = None
        self.include_import_task = True
        self.upload_status = 201
        self.wait_script = [lambda job_id: httpx.Response(200, json={"data": finished_job(job_id)})]
        self.download_status = 200
        self.download_body = b"converted-bytes"

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def created_job_payload(self, job_id: str) -> dict:
        tasks = []
        if self.include_import_task:
            tasks.append(
                {
                    "id": f"{job_id}-i",
                    "name": "import",
                    "operation": "import/upload",
                    "status": "waiting",
                    "result": {
                        "form": {
                            "url": f"https://{UPLOAD_HOST}/{job_id}",
                            "parameters": {"expires": 1700000000, "signature": "sig"},
                        }
                    },
                }
            )
        tasks.append({"id": f"{job_id}-c", "name": "convert", "status": "waiting"})
        tasks.append({"id": f"{job_id}-e", "name": "export", "status": "waiting"})
        return {"id": job_id, "status": "waiting", "tasks": tasks}

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        path = request.url.path

        if host == "api.cc.test" and request.method == "POST" and path == "/v2/jobs":
            if self.create_error is not None:
                raise self.create_error
            if self.create_response is not None:
                return self.create_response
            job_id = f"job-{next(self._ids)}"
            self.created_jobs.append(job_id)
            self.created_payloads.append(request.content)
            return httpx.Response(201, json={"data": self.created_job_payload(job_id)})

        if host == UPLOAD_HOST:
            job_id = path.strip("/")
            self.uploads[job_id] = request.read()
            return httpx.Response(self.upload_status)

        if host == "sync.cc.test" and path.startswith("/v2/jobs/"):
            job_id = path.rsplit("/", 1)[-1]
            index = self.wait_calls.get(job_id, 0)
            self.wait_calls[job_id] = index + 1
            step = self.wait_script[min(index, len(self.wait_script) - 1)]
            return step(job_id)

        if host == FILES_HOST:
            self.downloads.append(path)
            return httpx.Response(self.download_status, content=self.download_body)

        return httpx.Response(404, json={"message": f"unexpected {request.method} {request.url}"})

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [req for req in self.requests if req.url.host == host]


class RecordingTempStore(TempFileStore):
    def __init__(self):
        super().__init__(root=tempfile.mkdtemp(prefix="cc-test-root-"))
        self.paths: list[str] = []

    @contextmanager
    def scoped_file(self, payload, filename):
        with super().scoped_file(payload, filename) as path:
            self.paths.append(path)
            yield path

    def leftovers(self) -> list[str]:
        return os.listdir(self.root)
