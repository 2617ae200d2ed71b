# User value: This route strips the background from an uploaded image.
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response

from schemas.conversion_contract import TOOL_BACKGROUND
from services.background_removal import BackgroundRemovalError, CloudinaryBackgroundRemover
from services.providers import get_background_remover
from services.upload_validation import bad_request, validate_image_upload
from utils.metrics import incr

router = APIRouter(prefix="/api", tags=["images"])
logger = logging.getLogger("api.remove_background")


@router.post("/remove-image-background")
async def remove_image_background(
    image_file: UploadFile | None = File(default=None),
    remover: CloudinaryBackgroundRemover = Depends(get_background_remover),
):
    if image_file is None:
        raise bad_request("MISSING_FILE", "No image file provided.")
    payload = await image_file.read()
    if not payload:
        raise bad_request("EMPTY_FILE", "Received empty image file.")
    await image_file.seek(0)
    validate_image_upload(image_file, "png")

    try:
        content, mime = await remover.remove_background(payload, image_file.filename or "image")
    except BackgroundRemovalError as exc:
        incr("conversion_failures_total", tool=TOOL_BACKGROUND, stage="cloudinary")
        logger.warning("background_removal_failed file=%s error=%s", image_file.filename, exc)
        raise HTTPException(
            status_code=500,
            detail={
                "error_code": "BACKGROUND_REMOVAL_FAILED",
                "error_message": "Background removal processing failed.",
                "details": str(exc),
            },
        ) from exc

    incr("conversion_completed_total", tool=TOOL_BACKGROUND, target_format="png")
    return Response(content=content, media_type=mime)
