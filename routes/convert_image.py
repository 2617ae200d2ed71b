# User value: This route converts uploaded images between web formats on the server.
import asyncio
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from schemas.conversion_contract import IMAGE_FORMATS, TOOL_IMAGE, mime_for
from services.conversion_log import record_conversion
from services.image_converter import ImageConversionError, convert_image
from services.providers import get_redis_client
from services.upload_validation import validate_image_upload
from utils.filenames import content_disposition
from utils.metrics import incr

router = APIRouter(prefix="/api", tags=["images"])
logger = logging.getLogger("api.convert_image")


@router.post("/convert")
async def convert(
    image: UploadFile | None = File(default=None),
    target_format: str | None = Form(default=None, alias="format"),
    r=Depends(get_redis_client),
):
    file_name, target = validate_image_upload(image, target_format)
    payload = await image.read()

    try:
        result = await asyncio.to_thread(convert_image, payload, file_name, target)
    except ImageConversionError as exc:
        incr("conversion_failures_total", tool=TOOL_IMAGE, stage="encode")
        raise HTTPException(
            status_code=500,
            detail={
                "error_code": "IMAGE_CONVERSION_FAILED",
                "error_message": "Image conversion failed on server.",
                "details": str(exc),
            },
        ) from exc

    incr("conversion_completed_total", tool=TOOL_IMAGE, target_format=target)
    record_conversion(r=r, original_file_name=file_name, target_format=target, tool=TOOL_IMAGE)

    return Response(
        content=result.content,
        media_type=mime_for(target, IMAGE_FORMATS),
        headers={"Content-Disposition": content_disposition(result.file_name)},
    )
