# User value: This file keeps supported formats and failure stages consistent across every media tool.
from dataclasses import dataclass
from types import MappingProxyType

CONTRACT_VERSION = "2025-06-01-media-toolbox"

DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class FormatDescriptor:
    tag: str
    mime: str
    family: str
    animated: bool = False


DOCUMENT_FORMATS = MappingProxyType(
    {
        "pdf": FormatDescriptor("pdf", "application/pdf", "document"),
        "docx": FormatDescriptor(
            "docx",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "document",
        ),
        "txt": FormatDescriptor("txt", "text/plain", "document"),
        "html": FormatDescriptor("html", "text/html", "document"),
        "odt": FormatDescriptor("odt", "application/vnd.oasis.opendocument.text", "document"),
        "pptx": FormatDescriptor(
            "pptx",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "document",
        ),
        "jpg": FormatDescriptor("jpg", "image/jpeg", "image"),
        "png": FormatDescriptor("png", "image/png", "image"),
    }
)

IMAGE_FORMATS = MappingProxyType(
    {
        "jpeg": FormatDescriptor("jpeg", "image/jpeg", "image"),
        "png": FormatDescriptor("png", "image/png", "image"),
        "webp": FormatDescriptor("webp", "image/webp", "image", animated=True),
        "gif": FormatDescriptor("gif", "image/gif", "image", animated=True),
        "avif": FormatDescriptor("avif", "image/avif", "image", animated=True),
        "tiff": FormatDescriptor("tiff", "image/tiff", "image"),
    }
)

# Pillow encoder names differ from the public tags
PILLOW_FORMAT_NAMES = MappingProxyType(
    {
        "jpeg": "JPEG",
        "png": "PNG",
        "webp": "WEBP",
        "gif": "GIF",
        "avif": "AVIF",
        "tiff": "TIFF",
    }
)

STAGE_JOB_CREATION = "job-creation"
STAGE_UPLOAD = "upload"
STAGE_REMOTE_PROCESSING = "remote-processing"
STAGE_EXPORT_MISSING = "export-missing"
STAGE_DOWNLOAD = "download"

CONVERSION_STAGES = (
    STAGE_JOB_CREATION,
    STAGE_UPLOAD,
    STAGE_REMOTE_PROCESSING,
    STAGE_EXPORT_MISSING,
    STAGE_DOWNLOAD,
)

TASK_IMPORT = "import"
TASK_CONVERT = "convert"
TASK_EXPORT = "export"

JOB_TASK_NAMES = (TASK_IMPORT, TASK_CONVERT, TASK_EXPORT)

REMOTE_STATUS_WAITING = "waiting"
REMOTE_STATUS_CREATED = "created"
REMOTE_STATUS_PROCESSING = "processing"
REMOTE_STATUS_FINISHED = "finished"
REMOTE_STATUS_ERROR = "error"

REMOTE_JOB_STATUSES = (
    REMOTE_STATUS_WAITING,
    REMOTE_STATUS_CREATED,
    REMOTE_STATUS_PROCESSING,
    REMOTE_STATUS_FINISHED,
    REMOTE_STATUS_ERROR,
)

REMOTE_TERMINAL_STATUSES = (REMOTE_STATUS_FINISHED, REMOTE_STATUS_ERROR)

TOOL_DOCUMENT = "document"
TOOL_IMAGE = "image"
TOOL_BACKGROUND = "background-removal"
TOOL_TRANSCRIPTION = "transcription"
TOOL_TEXT = "text"


# User value: resolves the response content type so downloads open in the right app.
def mime_for(tag: str | None, table=DOCUMENT_FORMATS) -> str:
    descriptor = table.get(str(tag or "").strip().lower())
    return descriptor.mime if descriptor else DEFAULT_MIME_TYPE


def normalize_format(tag: str | None) -> str:
    return str(tag or "").strip().lower()
