# User value: This file builds each external-service client once from the environment so routes stay thin.
from functools import lru_cache

from fastapi import HTTPException

from config import cloudconvert_config_from_env, cloudinary_config_from_env, gemini_config_from_env
from services.background_removal import CloudinaryBackgroundRemover
from services.conversion_orchestrator import ConversionOrchestrator
from services.feature_flags import (
    is_background_removal_enabled,
    is_document_conversion_enabled,
    is_text_tools_enabled,
    is_transcription_enabled,
)
from services.redis_client import get_redis
from services.temp_storage import TempFileStore
from services.text_generation import GeminiTextService
from services.transcription import TranscriptionService


def feature_disabled(label: str) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail={"error_code": "FEATURE_DISABLED", "error_message": f"{label} is disabled on this server"},
    )


@lru_cache(maxsize=1)
def _conversion_orchestrator() -> ConversionOrchestrator:
    return ConversionOrchestrator(cloudconvert_config_from_env(), temp_store=TempFileStore())


@lru_cache(maxsize=1)
def _background_remover() -> CloudinaryBackgroundRemover:
    return CloudinaryBackgroundRemover(cloudinary_config_from_env())


@lru_cache(maxsize=1)
def _text_service() -> GeminiTextService:
    return GeminiTextService(gemini_config_from_env())


@lru_cache(maxsize=1)
def _transcription_service() -> TranscriptionService:
    return TranscriptionService(_text_service())


def get_conversion_orchestrator() -> ConversionOrchestrator:
    if not is_document_conversion_enabled():
        raise feature_disabled("Document conversion")
    return _conversion_orchestrator()


def get_background_remover() -> CloudinaryBackgroundRemover:
    if not is_background_removal_enabled():
        raise feature_disabled("Background removal")
    return _background_remover()


def get_text_service() -> GeminiTextService:
    if not is_text_tools_enabled():
        raise feature_disabled("Text tools")
    return _text_service()


def get_transcription_service() -> TranscriptionService:
    if not is_transcription_enabled():
        raise feature_disabled("Video transcription")
    return _transcription_service()


def get_redis_client():
    return get_redis()
