from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from resume_forge.ai.retry import call_with_retry
from resume_forge.ai.types import CompletionService, CompletionServiceError
from resume_forge.core.config import settings
from resume_forge.core.tuning import get_tuning_value
from resume_forge.normalize.normalize_resume import normalize_profile
from resume_forge.schemas.normalized import NormalizedProfile
from resume_forge.services.prompts import CLEANER_SYSTEM_PROMPT, build_cleaner_prompt

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?|\n?```\s*$")


@dataclass(frozen=True)
class CleanResult:
    text: str
    applied: bool


def _cfg(name: str, default):
    return get_tuning_value(f"cleaner.{name}", default)


async def clean_profile_text(
    text: str,
    *,
    completion_service: CompletionService | None,
) -> CleanResult:
    """Ask the completion service to repair extraction artifacts in ``text``.

    Never raises. Any failure, or a reply that looks truncated, returns the
    input unchanged with ``applied=False``.
    """
    min_chars = int(_cfg("min_chars", 50))
    max_input_chars = int(_cfg("max_input_chars", 15000))
    min_output_ratio = float(_cfg("min_output_ratio", 0.5))

    if completion_service is None or not settings.ai_cleaner_enabled:
        return CleanResult(text=text, applied=False)
    if not text or len(text.strip()) < min_chars:
        logger.info("ai_cleaner_skipped reason=too_short chars=%s", len(text or ""))
        return CleanResult(text=text, applied=False)

    payload = text[:max_input_chars]

    async def _call() -> str:
        return await completion_service.complete(
            build_cleaner_prompt(payload),
            system_instruction=CLEANER_SYSTEM_PROMPT,
            temperature=float(_cfg("temperature", 0.1)),
            max_output_tokens=8192,
        )

    try:
        reply = await call_with_retry(_call, label="ai_cleaner")
    except CompletionServiceError as exc:
        logger.warning("ai_cleaner_failed category=%s: %s", exc.category, exc)
        return CleanResult(text=text, applied=False)
    except Exception as exc:  # noqa: BLE001
        logger.warning("ai_cleaner_failed category=unexpected: %s", exc)
        return CleanResult(text=text, applied=False)

    cleaned = _FENCE_RE.sub("", (reply or "").strip()).strip()
    if not cleaned:
        logger.warning("ai_cleaner_rejected reason=empty_response")
        return CleanResult(text=text, applied=False)
    if len(cleaned) < len(payload) * min_output_ratio:
        logger.warning(
            "ai_cleaner_rejected reason=too_short input_chars=%s output_chars=%s",
            len(payload),
            len(cleaned),
        )
        return CleanResult(text=text, applied=False)

    if len(text) > max_input_chars:
        # Only the head was cleaned; keep the untouched tail.
        cleaned = f"{cleaned}\n{text[max_input_chars:]}"

    logger.info("ai_cleaner_applied input_chars=%s output_chars=%s", len(text), len(cleaned))
    return CleanResult(text=cleaned, applied=True)


def apply_cleaned_text(profile: NormalizedProfile, cleaned: str) -> NormalizedProfile:
    """Re-normalize cleaned text, keeping contact fields the original pass found."""
    try:
        reparsed = normalize_profile(cleaned)
    except ValueError as exc:
        logger.warning("ai_cleaner_renormalize_failed: %s", exc)
        return profile

    sections = reparsed.sections or profile.sections
    updated = profile.with_cleaned_sections(sections)
    return updated.model_copy(
        update={
            "name": profile.name or reparsed.name,
            "email": profile.email or reparsed.email,
            "phone": profile.phone or reparsed.phone,
            "linkedin": profile.linkedin or reparsed.linkedin,
            "location": profile.location or reparsed.location,
        }
    )
