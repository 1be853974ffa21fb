from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import asdict
from datetime import date
from typing import Awaitable, Callable, Sequence

from resume_forge.ai.factory import get_completion_service
from resume_forge.ai.retry import call_with_retry
from resume_forge.ai.types import Attachment, CompletionService, CompletionServiceError
from resume_forge.core.config import settings
from resume_forge.core.generation_cache import GenerationCache, get_generation_cache
from resume_forge.core.tuning import get_tuning_value
from resume_forge.features.content_validator import validate_generated_content
from resume_forge.features.corruption import is_corrupted_text
from resume_forge.features.experience import calculate_experience
from resume_forge.features.placeholders import (
    contains_placeholders,
    sanitize_cover_letter,
    strip_placeholders,
    tidy_stripped_markdown,
)
from resume_forge.features.resume_scorer import calculate_resume_score
from resume_forge.normalize.normalize_jd import job_summary, parse_job_posting_safe
from resume_forge.normalize.normalize_resume import format_profile
from resume_forge.parsing.models import ParsedArtifact
from resume_forge.parsing.orchestrator import ExtractionStrategy
from resume_forge.parsing.structure import render_tree
from resume_forge.parsing.validation import sanitize_job_description, validate_job_description
from resume_forge.schemas.generation import ContentWarningOut, GeneratedBundle, GenerationResult
from resume_forge.schemas.normalized import ExperienceEstimate, JobPosting, NormalizedProfile
from resume_forge.services.cleaner import CleanResult, apply_cleaned_text, clean_profile_text
from resume_forge.services.document_service import (
    ensure_valid_pdf,
    experience_source,
    load_document,
    profile_from_artifact,
)
from resume_forge.services.errors import (
    CorruptedOutputError,
    GenerationFailedError,
    InputRejectedError,
    PipelineTimeoutError,
    ServiceUnavailableError,
)
from resume_forge.services.prompts import (
    COVER_LETTER_SYSTEM_PROMPT,
    RESUME_SYSTEM_PROMPT,
    build_cover_letter_prompt,
    build_resume_prompt,
)

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*$", re.MULTILINE)

_UNSET = object()


class RequestDeadline:
    """Wall-clock budget for one request."""

    def __init__(
        self,
        budget_s: float | None = None,
        safety_margin_s: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.budget_s = float(budget_s if budget_s is not None else settings.request_budget_s)
        self.safety_margin_s = float(
            safety_margin_s if safety_margin_s is not None else settings.request_safety_margin_s
        )
        self._clock = clock
        self._started = clock()

    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> float:
        return self.budget_s - self.elapsed()

    def ensure(self, step: str) -> None:
        """Fail fast when too little budget is left to start ``step``."""
        remaining = self.remaining()
        if remaining < self.safety_margin_s:
            logger.warning(
                "request_deadline_exceeded step=%s elapsed_s=%.2f remaining_s=%.2f",
                step,
                self.elapsed(),
                remaining,
            )
            raise PipelineTimeoutError(
                f"The request ran out of time before {step.replace('_', ' ')}. Please try again."
            )


def clean_markdown_content(text: str) -> str:
    """Drop code fences and any chatter the model put before the first heading."""
    content = _CODE_FENCE_RE.sub("", (text or "").strip()).strip()
    lines = content.split("\n")
    for index, line in enumerate(lines):
        if line.lstrip().startswith("#"):
            if index:
                content = "\n".join(lines[index:])
            break
    return content.strip()


def _map_completion_error(exc: CompletionServiceError, step: str) -> Exception:
    if exc.transient:
        return ServiceUnavailableError(
            "The AI service is temporarily unavailable. Please try again in a few minutes."
        )
    if exc.category == "configuration":
        return ServiceUnavailableError("The AI service is not configured correctly.")
    return GenerationFailedError(f"AI generation failed during {step.replace('_', ' ')}.")


async def _complete_within_deadline(
    operation: Callable[[], Awaitable[str]],
    *,
    deadline: RequestDeadline,
    step: str,
) -> str:
    deadline.ensure(step)
    try:
        return await asyncio.wait_for(
            call_with_retry(operation, label=step),
            timeout=max(deadline.remaining(), 0.001),
        )
    except asyncio.TimeoutError as exc:
        logger.warning("generation_step_timeout step=%s elapsed_s=%.2f", step, deadline.elapsed())
        raise PipelineTimeoutError(
            f"The request ran out of time during {step.replace('_', ' ')}. Please try again."
        ) from exc
    except CompletionServiceError as exc:
        logger.warning("generation_step_failed step=%s category=%s: %s", step, exc.category, exc)
        raise _map_completion_error(exc, step) from exc


def page_attachments(artifact: ParsedArtifact) -> list[Attachment]:
    """Rendered page images sent alongside the resume prompt, first pages first."""
    limit = int(get_tuning_value("generation.max_page_images", 3))
    return [
        Attachment(mime_type="image/png", data=png, filename=f"page-{index}.png")
        for index, png in enumerate(artifact.images[:limit], start=1)
    ]


async def _clean_within_deadline(
    text: str,
    *,
    service: CompletionService,
    deadline: RequestDeadline,
) -> CleanResult:
    """Run the cleaner only in the budget left over after reserving time for generation."""
    reserve = float(get_tuning_value("cleaner.generation_reserve_s", 8.0))
    window = deadline.remaining() - deadline.safety_margin_s - reserve
    if window <= 0:
        logger.info("ai_cleaner_skipped reason=budget remaining_s=%.2f", deadline.remaining())
        return CleanResult(text=text, applied=False)
    try:
        return await asyncio.wait_for(clean_profile_text(text, completion_service=service), timeout=window)
    except asyncio.TimeoutError:
        logger.warning("ai_cleaner_timeout timeout_s=%.2f", window)
        return CleanResult(text=text, applied=False)


async def _gather_or_cancel(*tasks: asyncio.Task):
    """Await every task; on the first failure cancel the rest before re-raising."""
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.info("generation_tasks_cancelled count=%s", len(pending))
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _usable_cached(bundle: GeneratedBundle | None, include_cover_letter: bool) -> bool:
    if bundle is None:
        return False
    if contains_placeholders(bundle.resume):
        return False
    if include_cover_letter and (not bundle.cover_letter or contains_placeholders(bundle.cover_letter)):
        return False
    return True


async def _generate_resume(
    service: CompletionService,
    *,
    profile: NormalizedProfile,
    job_description: str,
    job: JobPosting,
    keywords: Sequence[str],
    experience: ExperienceEstimate,
    artifact: ParsedArtifact,
    deadline: RequestDeadline,
) -> str:
    attachments = page_attachments(artifact)
    prompt = build_resume_prompt(
        profile_markdown=format_profile(profile),
        job_description=job_description,
        job_title=job.title,
        company=job.company,
        keywords=keywords,
        requirements=job.requirements,
        experience_summary=experience.details,
        constraints=experience.constraints,
        ocr_text=artifact.ocr_text,
        job_overview=job_summary(job),
        layout_outline=render_tree(artifact.structure) if artifact.structure is not None else None,
        page_image_count=len(attachments),
    )

    async def _call() -> str:
        return await service.complete(
            prompt,
            system_instruction=RESUME_SYSTEM_PROMPT,
            attachments=attachments,
            temperature=float(get_tuning_value("generation.temperature", 0.4)),
            max_output_tokens=int(get_tuning_value("generation.max_output_tokens", 4096)),
        )

    raw = await _complete_within_deadline(_call, deadline=deadline, step="resume_generation")
    resume = clean_markdown_content(raw)
    if contains_placeholders(resume):
        logger.warning("generated_resume_placeholders_stripped")
        resume = tidy_stripped_markdown(strip_placeholders(resume))

    min_chars = int(get_tuning_value("generation.min_resume_chars", 100))
    if len(resume) < min_chars:
        logger.warning("generated_resume_too_short chars=%s min=%s", len(resume), min_chars)
        raise GenerationFailedError("The generated resume was empty or too short. Please try again.")
    if is_corrupted_text(resume):
        logger.warning("generated_resume_corrupted chars=%s", len(resume))
        raise CorruptedOutputError("The generated resume was corrupted. Please try again.")
    return resume


async def _generate_cover_letter(
    service: CompletionService,
    *,
    profile: NormalizedProfile,
    job_description: str,
    job: JobPosting,
    experience: ExperienceEstimate,
    deadline: RequestDeadline,
) -> str:
    prompt = build_cover_letter_prompt(
        profile_markdown=format_profile(profile),
        job_description=job_description,
        job_title=job.title,
        company=job.company,
        candidate_name=profile.name,
        experience_summary=experience.details,
    )

    async def _call() -> str:
        return await service.complete(
            prompt,
            system_instruction=COVER_LETTER_SYSTEM_PROMPT,
            temperature=float(get_tuning_value("generation.temperature", 0.4)),
            max_output_tokens=int(get_tuning_value("generation.max_output_tokens", 4096)),
        )

    raw = await _complete_within_deadline(_call, deadline=deadline, step="cover_letter_generation")
    letter = sanitize_cover_letter(_CODE_FENCE_RE.sub("", (raw or "").strip()).strip())

    min_chars = int(get_tuning_value("generation.min_cover_letter_chars", 50))
    if len(letter) < min_chars:
        logger.warning("generated_cover_letter_too_short chars=%s min=%s", len(letter), min_chars)
        raise GenerationFailedError("The generated cover letter was empty or too short. Please try again.")
    if is_corrupted_text(letter):
        logger.warning("generated_cover_letter_corrupted chars=%s", len(letter))
        raise CorruptedOutputError("The generated cover letter was corrupted. Please try again.")
    return letter


def _content_warnings(
    bundle: GeneratedBundle,
    *,
    source_text: str,
    profile: NormalizedProfile,
    experience: ExperienceEstimate,
) -> list[ContentWarningOut]:
    generated = "\n\n".join(part for part in (bundle.resume, bundle.cover_letter) if part)
    source = f"{source_text}\n\n{format_profile(profile)}"
    try:
        found = validate_generated_content(generated, source, experience=experience)
    except Exception as exc:  # noqa: BLE001
        logger.warning("content_validation_failed: %s", exc)
        return []
    if found:
        logger.warning(
            "content_validation_warnings count=%s fields=%s",
            len(found),
            ",".join(sorted({item.field for item in found})),
        )
    return [ContentWarningOut(**asdict(item)) for item in found]


async def generate(
    pdf_bytes: bytes,
    job_description: str,
    *,
    include_cover_letter: bool = True,
    completion_service: CompletionService | None = None,
    cache: GenerationCache | None | object = _UNSET,
    strategies: Sequence[ExtractionStrategy] | None = None,
    deadline: RequestDeadline | None = None,
    today: date | None = None,
) -> GenerationResult:
    """Turn a PDF resume and a job description into a tailored resume and cover letter.

    Raises a ``PipelineError`` subclass for every failure the caller should
    report; recoverable stages fall back quietly.
    """
    deadline = deadline or RequestDeadline()

    raw = ensure_valid_pdf(pdf_bytes)
    jd_check = validate_job_description(job_description)
    if not jd_check.valid:
        raise InputRejectedError(jd_check.error or "Invalid job description")
    job_description = sanitize_job_description(job_description)

    service = completion_service or get_completion_service()
    if service is None:
        raise ServiceUnavailableError("AI generation is not configured on this server.")
    active_cache = get_generation_cache() if cache is _UNSET else cache

    artifact = await load_document(raw, completion_service=service, strategies=strategies)

    source_text, profile = profile_from_artifact(artifact)

    cleaned = await _clean_within_deadline(format_profile(profile), service=service, deadline=deadline)
    if cleaned.applied:
        if is_corrupted_text(cleaned.text):
            logger.warning("ai_cleaner_output_corrupted; keeping rule-based profile")
        else:
            profile = apply_cleaned_text(profile, cleaned.text)

    job, keywords = parse_job_posting_safe(job_description)
    experience = calculate_experience(experience_source(profile, source_text), today=today)
    logger.info(
        "generation_inputs source=%s chars=%s sections=%s keywords=%s experience_years=%s",
        artifact.source,
        len(source_text),
        ",".join(profile.sections),
        len(keywords),
        experience.total_years,
    )

    cache_key: str | None = None
    bundle: GeneratedBundle | None = None
    cached = False
    if active_cache is not None:
        cache_key = active_cache.make_key(source_text, job_description, include_cover_letter)
        hit = active_cache.get(cache_key)
        if _usable_cached(hit, include_cover_letter):
            bundle = hit
            cached = True
            logger.info("generation_cache_hit key=%s", cache_key[:12])
        elif hit is not None:
            logger.info("generation_cache_rejected key=%s reason=placeholders", cache_key[:12])
            active_cache.delete(cache_key)

    if bundle is None:
        resume_task = asyncio.create_task(
            _generate_resume(
                service,
                profile=profile,
                job_description=job_description,
                job=job,
                keywords=keywords,
                experience=experience,
                artifact=artifact,
                deadline=deadline,
            )
        )
        if include_cover_letter:
            cover_task = asyncio.create_task(
                _generate_cover_letter(
                    service,
                    profile=profile,
                    job_description=job_description,
                    job=job,
                    experience=experience,
                    deadline=deadline,
                )
            )
            resume, cover_letter = await _gather_or_cancel(resume_task, cover_task)
        else:
            resume, cover_letter = await resume_task, None
        bundle = GeneratedBundle(resume=resume, cover_letter=cover_letter)

    warnings = _content_warnings(bundle, source_text=source_text, profile=profile, experience=experience)
    source_score = calculate_resume_score(source_text)
    generated_score = calculate_resume_score(bundle.resume)

    if active_cache is not None and cache_key is not None and not cached:
        if not active_cache.put(cache_key, bundle):
            logger.warning("generation_cache_write_skipped key=%s", cache_key[:12])

    elapsed_ms = int(deadline.elapsed() * 1000)
    logger.info(
        "generation_complete cached=%s elapsed_ms=%s source_score=%s generated_score=%s warnings=%s",
        cached,
        elapsed_ms,
        source_score.score,
        generated_score.score,
        len(warnings),
    )
    return GenerationResult(
        resume=bundle.resume,
        cover_letter=bundle.cover_letter,
        profile=profile,
        experience=experience,
        source_score=source_score,
        generated_score=generated_score,
        job=job,
        keywords=keywords,
        warnings=warnings,
        cached=cached,
        metadata={
            "processing_time_ms": elapsed_ms,
            "parse_source": artifact.source,
            "page_count": artifact.page_count,
            "char_count": len(source_text),
            "ai_cleaned": cleaned.applied,
            "parse_warnings": list(artifact.warnings),
        },
    )
