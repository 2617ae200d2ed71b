# User value: This route transcribes an uploaded video or a video link.
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from schemas.conversion_contract import TOOL_TRANSCRIPTION
from schemas.responses import TranscriptionResponse
from services.providers import get_transcription_service
from services.text_generation import TextGenerationError
from services.transcription import TranscriptionError, TranscriptionService, is_youtube_url
from services.upload_validation import bad_request, validate_video_upload
from utils.metrics import incr

router = APIRouter(prefix="/api", tags=["transcription"])
logger = logging.getLogger("api.transcribe")

OPERATION_FILE = "file"
OPERATION_URL = "url"


@router.post("/transcribe-video", response_model=TranscriptionResponse, response_model_exclude_none=True)
async def transcribe_video(
    operation_type: str | None = Form(default=None, alias="operationType"),
    video: UploadFile | None = File(default=None),
    video_url: str | None = Form(default=None, alias="videoUrl"),
    service: TranscriptionService = Depends(get_transcription_service),
):
    operation = str(operation_type or "").strip().lower()
    if operation not in (OPERATION_FILE, OPERATION_URL):
        raise bad_request("INVALID_OPERATION", "Invalid operation type.")

    try:
        if operation == OPERATION_FILE:
            if video is None:
                raise bad_request("MISSING_FILE", "No video file provided.")
            file_name = validate_video_upload(video)
            result = await service.transcribe_upload(await video.read(), file_name)
        else:
            url = str(video_url or "").strip()
            if not url:
                raise bad_request("MISSING_VIDEO_URL", "No video URL provided.")
            if not is_youtube_url(url):
                raise bad_request("INVALID_VIDEO_URL", "Only YouTube video links are supported.")
            result = await service.transcribe_url(url)
    except (TranscriptionError, TextGenerationError) as exc:
        incr("conversion_failures_total", tool=TOOL_TRANSCRIPTION, stage=operation)
        logger.warning("transcription_failed operation=%s error=%s", operation, exc)
        raise HTTPException(
            status_code=500,
            detail={"error_code": "TRANSCRIPTION_FAILED", "error_message": str(exc)},
        ) from exc

    incr("conversion_completed_total", tool=TOOL_TRANSCRIPTION, target_format="text")
    return TranscriptionResponse(
        transcription=result["transcription"],
        video_title=result.get("videoTitle"),
    )
