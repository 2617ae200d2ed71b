# User value: This file describes the JSON bodies the text tools accept.
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class HumanizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text_to_humanize: Optional[str] = Field(default=None, alias="textToHumanize")
    # User value: lets users pick a voice for the rewrite instead of the default editor persona.
    desired_style: Optional[str] = Field(default=None, alias="desiredStyle")


class ProofreadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text_to_proofread: Optional[str] = Field(default=None, alias="textToProofread")
