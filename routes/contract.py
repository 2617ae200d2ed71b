# User value: This file tells clients which formats and tools this deployment supports.
from fastapi import APIRouter

from schemas.conversion_contract import (
    CONTRACT_VERSION,
    CONVERSION_STAGES,
    DOCUMENT_FORMATS,
    IMAGE_FORMATS,
)
from services.feature_flags import capabilities

router = APIRouter()


def _describe(table) -> list[dict]:
    return [
        {"tag": d.tag, "mime": d.mime, "family": d.family, "animated": d.animated}
        for d in table.values()
    ]


@router.get("/contract/formats")
# User value: keeps the format pickers in the UI in step with what the server accepts.
def formats_contract():
    return {
        "contract_version": CONTRACT_VERSION,
        "document_formats": _describe(DOCUMENT_FORMATS),
        "image_formats": _describe(IMAGE_FORMATS),
        "conversion_failure_stages": list(CONVERSION_STAGES),
        "capabilities": capabilities(),
    }
