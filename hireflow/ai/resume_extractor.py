from __future__ import annotations

import json
import logging
import time
from functools import lru_cache
from typing import Any

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from hireflow.core.config import settings
from hireflow.schemas.recruiting import ParsedResume

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a resume parsing assistant. Extract structured information from resumes "
    "and return it in JSON format."
)

USER_PROMPT_TEMPLATE = """Parse this resume and extract the following information in JSON format:
{{
  "name": "candidate full name",
  "email": "email address",
  "phone": "phone number",
  "skills": ["array of skills"],
  "experience_years": "number of years of experience",
  "education": "education details",
  "summary": "brief professional summary"
}}

Resume text:
{resume_text}"""

PARSE_RESUME_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "parse_resume",
        "description": "Extract structured data from resume",
        "parameters": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "email": {"type": "string"},
                "phone": {"type": "string"},
                "skills": {"type": "array", "items": {"type": "string"}},
                "experience_years": {"type": "number"},
                "education": {"type": "string"},
                "summary": {"type": "string"},
            },
            "required": ["name", "skills"],
            "additionalProperties": False,
        },
    },
}


class ResumeExtractionError(RuntimeError):
    def __init__(self, message: str, *, code: str = "ai_request_failed"):
        super().__init__(message)
        self.code = code


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def extraction_enabled() -> bool:
    if not settings.ai_extraction_enabled:
        return False
    api_key = (settings.openai_api_key or "").strip()
    return bool(api_key) and not _looks_like_placeholder(api_key)


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(
        api_key=(settings.openai_api_key or "").strip(),
        base_url=settings.openai_base_url or None,
        timeout=settings.ai_timeout_s,
        max_retries=settings.openai_max_retries,
    )


def _tool_arguments(response: Any) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        raise ResumeExtractionError("No structured data returned from AI", code="no_structured_data")
    message = getattr(choices[0], "message", None)
    tool_calls = getattr(message, "tool_calls", None) or []
    if not tool_calls:
        raise ResumeExtractionError("No structured data returned from AI", code="no_structured_data")
    return tool_calls[0].function.arguments or ""


def extract_resume_fields(resume_text: str) -> ParsedResume:
    """Ask the AI endpoint to turn resume text into structured fields via a forced tool call."""
    if not extraction_enabled():
        raise ResumeExtractionError("AI extraction is disabled or OPENAI_API_KEY is missing.", code="ai_disabled")

    started = time.perf_counter()
    try:
        response = _client().chat.completions.create(
            model=settings.ai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": USER_PROMPT_TEMPLATE.format(resume_text=resume_text)},
            ],
            tools=[PARSE_RESUME_TOOL],
            tool_choice={"type": "function", "function": {"name": "parse_resume"}},
        )
    except OpenAIError as exc:
        logger.warning("resume_extraction_failed model=%s text_len=%s: %s", settings.ai_model, len(resume_text), exc)
        raise ResumeExtractionError(f"AI parsing failed: {exc}", code="ai_request_failed") from exc

    arguments = _tool_arguments(response)
    try:
        payload = json.loads(arguments)
        parsed = ParsedResume.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ResumeExtractionError(f"AI returned an invalid resume payload: {exc}", code="invalid_payload") from exc

    logger.info(
        "resume_extraction_complete model=%s skills=%s latency_ms=%s",
        settings.ai_model,
        len(parsed.skills),
        int((time.perf_counter() - started) * 1000),
    )
    return parsed
