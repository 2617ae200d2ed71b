# User value: This file lets operators switch media tools on or off without touching the conversion code.
import os


# User value: supports _flag so each tool can be rolled out or parked safely.
def _flag(name: str, default: bool = False) -> bool:
    raw = str(os.getenv(name, "1" if default else "0")).strip().lower()
    return raw in {"1", "true", "yes", "on"}


FEATURE_DOCUMENT_CONVERSION = _flag("FEATURE_DOCUMENT_CONVERSION", True)
FEATURE_BACKGROUND_REMOVAL = _flag("FEATURE_BACKGROUND_REMOVAL", True)
FEATURE_TEXT_TOOLS = _flag("FEATURE_TEXT_TOOLS", True)
FEATURE_TRANSCRIPTION = _flag("FEATURE_TRANSCRIPTION", True)
FEATURE_CONVERSION_LOG = _flag("FEATURE_CONVERSION_LOG", True)

FLAG_NAMES = (
    "FEATURE_DOCUMENT_CONVERSION",
    "FEATURE_BACKGROUND_REMOVAL",
    "FEATURE_TEXT_TOOLS",
    "FEATURE_TRANSCRIPTION",
    "FEATURE_CONVERSION_LOG",
)


# User value: keeps document conversion off when CloudConvert is not provisioned.
def is_document_conversion_enabled() -> bool:
    return FEATURE_DOCUMENT_CONVERSION


# User value: keeps background removal off when Cloudinary is not provisioned.
def is_background_removal_enabled() -> bool:
    return FEATURE_BACKGROUND_REMOVAL


# User value: gates humanize/proofread so users only see them when Gemini is configured.
def is_text_tools_enabled() -> bool:
    return FEATURE_TEXT_TOOLS


# User value: gates video transcription so users only see it when Gemini is configured.
def is_transcription_enabled() -> bool:
    return FEATURE_TRANSCRIPTION


# User value: supports conversion history only when Redis is available.
def is_conversion_log_enabled() -> bool:
    return FEATURE_CONVERSION_LOG


def capabilities() -> dict:
    return {
        "document_conversion_enabled": is_document_conversion_enabled(),
        "image_conversion_enabled": True,
        "background_removal_enabled": is_background_removal_enabled(),
        "text_tools_enabled": is_text_tools_enabled(),
        "transcription_enabled": is_transcription_enabled(),
        "conversion_log_enabled": is_conversion_log_enabled(),
    }
