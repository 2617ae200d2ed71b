# User value: This file describes the JSON shapes the media tools send back.
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional


class HumanizedTextResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    humanized_text: str = Field(..., serialization_alias="humanizedText")


class CorrectedTextResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    corrected_text: str = Field(..., serialization_alias="correctedText")


class TranscriptionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transcription: str
    # User value: shows which video a link transcript came from.
    video_title: Optional[str] = Field(default=None, serialization_alias="videoTitle")


class ConversionLogEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    original_file_name: Optional[str] = None
    original_format: Optional[str] = None
    target_format: Optional[str] = None
    user_id: Optional[str] = None
    tool: Optional[str] = None
    status: Optional[str] = None


class ConversionLogResponse(BaseModel):
    entries: List[ConversionLogEntry] = Field(default_factory=list)
    count: int = 0


class ErrorResponse(BaseModel):
    # User value: every failure carries the same fields so the UI can show one kind of error message.
    error: str
    details: Optional[Any] = None
    error_code: str
    path: Optional[str] = None
    request_id: Optional[str] = None
