# User value: This file rewrites, proofreads and transcribes through Gemini with predictable failures.
import logging
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from config import GeminiConfig

logger = logging.getLogger("api.text_generation")

DEFAULT_PERSONA = "a talented but slightly cynical blog editor"

TRANSCRIBE_PROMPT = "Transcribe the audio accurately. Provide only the text of the transcription."


class TextGenerationError(Exception):
    pass


def humanize_prompt(original_text: str, style: Optional[str] = None) -> str:
    persona = f"a skilled writer with a {style.strip()} voice" if style and style.strip() else DEFAULT_PERSONA
    return f"""You are an editor for a popular online magazine. You take stiff, machine-sounding text and
rewrite it so it reads as if a person with a real voice wrote it.

Rules:
1. Keep the meaning, drop the original sentence structure and rebuild the ideas in your own words.
2. Vary sentence length freely; mix long sentences with short fragments.
3. Replace corporate filler ("utilize", "leverage", "moreover") with plain everyday words.
4. Write as {persona}, with a light point of view.
5. Conversational is fine. Do not aim for an academic essay.

Reply with the rewritten text only, without any introduction or closing remarks.

Original Text:
\"\"\"
{original_text}
\"\"\"

Rewritten Text:
"""


def proofread_prompt(original_text: str) -> str:
    return f"""You are a strict proofreading engine. Correct objective errors in the text below without changing
the author's content or voice.

Correct:
- grammar, spelling, tense and agreement errors
- punctuation, including typographic quotes and dashes
- inconsistent capitalization, terminology and abbreviations

Do not rephrase sentences, change vocabulary (except misspellings) or reorder ideas.
If the text is already correct, return it unchanged.

Reply with the corrected text only, without explanations.

Original Text:
\"\"\"
{original_text}
\"\"\"

Corrected Text:
"""


class GeminiTextService:
    def __init__(self, config: GeminiConfig, model: Any = None):
        self._config = config
        if model is None:
            genai.configure(api_key=config.api_key)
            model = genai.GenerativeModel(config.model)
        self._model = model

    async def _generate(self, contents: Any, label: str) -> str:
        try:
            response = await self._model.generate_content_async(contents)
        except google_exceptions.GoogleAPIError as exc:
            logger.warning("gemini_request_failed label=%s error=%s: %s", label, exc.__class__.__name__, exc)
            raise TextGenerationError(f"Gemini request failed: {exc}") from exc

        try:
            text = response.text
        except ValueError as exc:
            # raised when the candidate was blocked or carries no text part
            raise TextGenerationError(f"Failed to get {label} from AI service.") from exc

        if not text or not text.strip():
            raise TextGenerationError(f"Failed to get {label} from AI service.")
        return text

    async def humanize(self, text: str, style: Optional[str] = None) -> str:
        return await self._generate(humanize_prompt(text, style), "humanized text")

    async def proofread(self, text: str) -> str:
        return await self._generate(proofread_prompt(text), "corrected text")

    async def transcribe_audio(self, audio: bytes, mime_type: str = "audio/mp3") -> str:
        if not audio:
            raise TextGenerationError("No audio data could be prepared for transcription.")
        parts = [TRANSCRIBE_PROMPT, {"mime_type": mime_type, "data": audio}]
        try:
            return await self._generate(parts, "transcription")
        except TextGenerationError as exc:
            raise TextGenerationError(f"Gemini API transcription failed: {exc}") from exc
