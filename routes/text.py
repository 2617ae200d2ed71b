# User value: This route rewrites or proofreads text with Gemini.
import logging

from fastapi import APIRouter, Depends, HTTPException

from schemas.conversion_contract import TOOL_TEXT
from schemas.requests import HumanizeRequest, ProofreadRequest
from schemas.responses import CorrectedTextResponse, HumanizedTextResponse
from services.providers import get_text_service
from services.text_generation import GeminiTextService, TextGenerationError
from services.upload_validation import validate_text
from utils.metrics import incr

router = APIRouter(prefix="/api", tags=["text"])
logger = logging.getLogger("api.text")


def _generation_failed(label: str, exc: Exception) -> HTTPException:
    incr("text_generation_failed_total", tool=TOOL_TEXT, operation=label.lower())
    logger.warning("text_generation_failed operation=%s error=%s", label, exc)
    return HTTPException(
        status_code=500,
        detail={"error_code": "TEXT_GENERATION_FAILED", "error_message": f"{label} failed: {exc}"},
    )


@router.post("/humanize-text", response_model=HumanizedTextResponse)
async def humanize_text(body: HumanizeRequest, service: GeminiTextService = Depends(get_text_service)):
    text = validate_text(body.text_to_humanize, "textToHumanize")
    try:
        humanized = await service.humanize(text, body.desired_style)
    except TextGenerationError as exc:
        raise _generation_failed("Humanizer", exc) from exc
    return HumanizedTextResponse(humanized_text=humanized)


@router.post("/proofread-text", response_model=CorrectedTextResponse)
async def proofread_text(body: ProofreadRequest, service: GeminiTextService = Depends(get_text_service)):
    text = validate_text(body.text_to_proofread, "textToProofread")
    try:
        corrected = await service.proofread(text)
    except TextGenerationError as exc:
        raise _generation_failed("Proofreader", exc) from exc
    return CorrectedTextResponse(corrected_text=corrected)
