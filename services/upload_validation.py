# User value: This file rejects bad uploads early with a clear error code instead of a failed conversion.
import logging
import os

from fastapi import HTTPException, UploadFile

from schemas.conversion_contract import DOCUMENT_FORMATS, IMAGE_FORMATS, normalize_format
from utils.metrics import incr

logger = logging.getLogger("api.upload")

MAX_DOCUMENT_FILE_SIZE_MB = int(os.getenv("MAX_DOCUMENT_FILE_SIZE_MB", "50"))
MAX_IMAGE_FILE_SIZE_MB = int(os.getenv("MAX_IMAGE_FILE_SIZE_MB", "25"))
MAX_VIDEO_FILE_SIZE_MB = int(os.getenv("MAX_VIDEO_FILE_SIZE_MB", "200"))
MAX_TEXT_CHARS = int(os.getenv("MAX_TEXT_CHARS", "20000"))

MAX_DOCUMENT_FILE_SIZE_BYTES = MAX_DOCUMENT_FILE_SIZE_MB * 1024 * 1024
MAX_IMAGE_FILE_SIZE_BYTES = MAX_IMAGE_FILE_SIZE_MB * 1024 * 1024
MAX_VIDEO_FILE_SIZE_BYTES = MAX_VIDEO_FILE_SIZE_MB * 1024 * 1024


def bad_request(error_code: str, message: str) -> HTTPException:
    incr("api_validation_failed_total", error_code=error_code)
    logger.warning("upload_validation_failed error_code=%s message=%s", error_code, message)
    return HTTPException(status_code=400, detail={"error_code": error_code, "error_message": message})


def extension(filename: str | None) -> str:
    return os.path.splitext(str(filename or "").strip().lower())[1]


def get_upload_size_bytes(file_obj) -> int:
    pos = file_obj.tell()
    file_obj.seek(0, os.SEEK_END)
    size = file_obj.tell()
    file_obj.seek(pos, os.SEEK_SET)
    return int(size)


def require_upload(file: UploadFile | None) -> UploadFile:
    if file is None:
        raise bad_request("MISSING_FILE", "No file uploaded")
    return file


def validate_size(size_bytes: int, max_bytes: int, max_mb: int, label: str) -> None:
    if size_bytes <= 0:
        raise bad_request("EMPTY_FILE", f"Uploaded {label} is empty")
    if size_bytes > max_bytes:
        raise bad_request("FILE_TOO_LARGE", f"{label.capitalize()} exceeds max {max_mb} MB")


# User value: checks a document upload before any remote job is created for it.
def validate_document_upload(file: UploadFile | None, target_format: str | None, input_file_name: str | None) -> tuple[str, str]:
    """Return ``(original_file_name, normalized_target_format)`` or raise a 400."""
    upload = require_upload(file)

    target = normalize_format(target_format)
    if not target:
        raise bad_request("UNSUPPORTED_TARGET_FORMAT", "Target format is required")
    if target not in DOCUMENT_FORMATS:
        raise bad_request(
            "UNSUPPORTED_TARGET_FORMAT",
            f"Document conversion supports: {', '.join(DOCUMENT_FORMATS)}",
        )

    name = str(input_file_name or "").strip() or str(upload.filename or "").strip()
    if not name:
        raise bad_request("INVALID_FILENAME", "Input file name is required")

    size = get_upload_size_bytes(upload.file)
    validate_size(size, MAX_DOCUMENT_FILE_SIZE_BYTES, MAX_DOCUMENT_FILE_SIZE_MB, "document")
    return name, target


def validate_image_upload(file: UploadFile | None, target_format: str | None) -> tuple[str, str]:
    upload = require_upload(file)

    target = normalize_format(target_format)
    if target == "jpg":
        target = "jpeg"
    if target not in IMAGE_FORMATS:
        raise bad_request(
            "UNSUPPORTED_TARGET_FORMAT",
            f"Image conversion supports: {', '.join(IMAGE_FORMATS)}",
        )

    name = str(upload.filename or "").strip()
    if not name:
        raise bad_request("INVALID_FILENAME", "Filename is required")

    size = get_upload_size_bytes(upload.file)
    validate_size(size, MAX_IMAGE_FILE_SIZE_BYTES, MAX_IMAGE_FILE_SIZE_MB, "image")
    return name, target


def validate_video_upload(file: UploadFile | None) -> str:
    upload = require_upload(file)
    name = str(upload.filename or "").strip()
    if not name:
        raise bad_request("INVALID_FILENAME", "Filename is required")
    size = get_upload_size_bytes(upload.file)
    validate_size(size, MAX_VIDEO_FILE_SIZE_BYTES, MAX_VIDEO_FILE_SIZE_MB, "video")
    return name


def validate_text(value: str | None, field: str) -> str:
    text = str(value or "")
    if not text.strip():
        raise bad_request("INVALID_TEXT", f"{field} is required")
    if len(text) > MAX_TEXT_CHARS:
        raise bad_request("INVALID_TEXT", f"{field} exceeds max {MAX_TEXT_CHARS} characters")
    return text
