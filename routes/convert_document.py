# User value: This route converts uploaded documents between office, text and image formats.
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from schemas.conversion_contract import TOOL_DOCUMENT, mime_for
from services.conversion_log import record_conversion
from services.conversion_orchestrator import ConversionFailure, ConversionOrchestrator, ConversionRequest
from services.providers import get_conversion_orchestrator, get_redis_client
from services.upload_validation import validate_document_upload
from utils.filenames import content_disposition

router = APIRouter(prefix="/api", tags=["documents"])
logger = logging.getLogger("api.convert_document")


def conversion_failed(exc: ConversionFailure) -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={
            "error_code": exc.stage,
            "error_message": exc.cause,
            "details": exc.details,
            "job_id": exc.job_id,
        },
    )


@router.post("/convert-document")
async def convert_document(
    document: UploadFile | None = File(default=None),
    target_format: str | None = Form(default=None, alias="targetFormat"),
    input_file_name: str | None = Form(default=None, alias="inputFileName"),
    orchestrator: ConversionOrchestrator = Depends(get_conversion_orchestrator),
    r=Depends(get_redis_client),
):
    file_name, target = validate_document_upload(document, target_format, input_file_name)
    payload = await document.read()

    try:
        result = await orchestrator.convert(
            ConversionRequest(payload=payload, original_file_name=file_name, target_format=target)
        )
    except ConversionFailure as exc:
        logger.warning(
            "document_conversion_failed file=%s target=%s stage=%s job_id=%s",
            file_name,
            target,
            exc.stage,
            exc.job_id,
        )
        raise conversion_failed(exc) from exc

    record_conversion(r=r, original_file_name=file_name, target_format=target, tool=TOOL_DOCUMENT)

    return Response(
        content=result.content,
        media_type=mime_for(target),
        headers={"Content-Disposition": content_disposition(result.file_name)},
    )
