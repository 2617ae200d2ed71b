import logging
import os
from typing import List

from services import feature_flags

logger = logging.getLogger("api.startup")


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _validate_redis_url(value: str | None, key: str, errors: List[str]) -> None:
    if _is_blank(value):
        errors.append(f"{key} is required")
        return
    if not (value.startswith("redis://") or value.startswith("rediss://")):
        errors.append(f"{key} must start with redis:// or rediss://")


def _validate_cors_allow_origins(value: str | None, warnings: List[str], errors: List[str]) -> None:
    if _is_blank(value):
        warnings.append("CORS_ALLOW_ORIGINS is not set; cross-origin browser calls will be refused")
        return

    origins = [x.strip() for x in str(value).split(",") if x.strip()]
    for origin in origins:
        if origin == "*":
            errors.append("CORS_ALLOW_ORIGINS must not contain '*' in strict allowlist mode")
            continue
        if not (origin.startswith("http://") or origin.startswith("https://")):
            errors.append(f"CORS origin must start with http:// or https://: {origin}")


_BOOL_VALUES = {"1", "0", "true", "false", "yes", "no", "on", "off"}


def _validate_bool_flag_env(key: str, errors: List[str]) -> None:
    raw = os.getenv(key)
    if _is_blank(raw):
        return
    if str(raw).strip().lower() not in _BOOL_VALUES:
        errors.append(f"{key} must be one of {sorted(_BOOL_VALUES)}")


def _validate_positive_float(key: str, errors: List[str], allow_zero: bool = False) -> None:
    raw = os.getenv(key)
    if _is_blank(raw):
        return
    try:
        value = float(raw)
    except ValueError:
        errors.append(f"{key} must be a number")
        return
    if value < 0 or (value == 0 and not allow_zero):
        errors.append(f"{key} must be {'>= 0' if allow_zero else '> 0'}")


def _validate_non_negative_int(key: str, errors: List[str]) -> None:
    raw = os.getenv(key)
    if _is_blank(raw):
        return
    try:
        value = int(str(raw).strip())
    except ValueError:
        errors.append(f"{key} must be an integer")
        return
    if value < 0:
        errors.append(f"{key} must be >= 0")


def required_keys() -> list[str]:
    keys: list[str] = []
    if feature_flags.is_document_conversion_enabled():
        keys.append("CLOUDCONVERT_API_KEY")
    if feature_flags.is_background_removal_enabled():
        keys.extend(["CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"])
    if feature_flags.is_text_tools_enabled() or feature_flags.is_transcription_enabled():
        keys.append("GEMINI_API_KEY")
    return keys


def validate_startup_env() -> None:
    errors: List[str] = []
    warnings: List[str] = []

    for flag in feature_flags.FLAG_NAMES:
        _validate_bool_flag_env(flag, errors)

    required = required_keys()
    for key in required:
        if _is_blank(os.getenv(key)):
            errors.append(f"{key} is required")

    if feature_flags.is_conversion_log_enabled():
        _validate_redis_url(os.getenv("REDIS_URL"), "REDIS_URL", errors)
    _validate_cors_allow_origins(os.getenv("CORS_ALLOW_ORIGINS"), warnings, errors)

    _validate_positive_float("CLOUDCONVERT_WAIT_TIMEOUT_SEC", errors, allow_zero=True)
    _validate_positive_float("CLOUDCONVERT_POLL_INTERVAL_SEC", errors)
    _validate_positive_float("CLOUDCONVERT_HTTP_TIMEOUT_SEC", errors)
    _validate_positive_float("CLOUDCONVERT_RETRY_BACKOFF_SEC", errors, allow_zero=True)
    _validate_non_negative_int("CLOUDCONVERT_WAIT_RETRIES", errors)

    if feature_flags.is_transcription_enabled() and _is_blank(os.getenv("YOUTUBE_COOKIE")):
        warnings.append("YOUTUBE_COOKIE is not set; YouTube URL transcription may fail")

    if errors:
        for err in errors:
            logger.error("startup_env_invalid %s", err)
        raise RuntimeError("Startup env validation failed: " + "; ".join(errors))

    for warning in warnings:
        logger.warning("startup_env_warning %s", warning)

    logger.info("startup_env_validated keys=%s", required)
