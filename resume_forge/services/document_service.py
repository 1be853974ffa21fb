from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from resume_forge.ai.types import CompletionService
from resume_forge.features.corruption import is_corrupted_text
from resume_forge.features.experience import calculate_experience
from resume_forge.normalize.normalize_resume import format_profile, normalize_profile
from resume_forge.normalize.utils import is_page_marker
from resume_forge.parsing.models import ParsedArtifact, RawDocument
from resume_forge.parsing.orchestrator import ExtractionStrategy, parse_document
from resume_forge.parsing.sanitize import sanitize_text
from resume_forge.parsing.structure import export_tree_json
from resume_forge.parsing.validation import validate_pdf_buffer
from resume_forge.schemas.generation import ExtractTextResponse, NormalizeResumeResponse
from resume_forge.schemas.normalized import NormalizedProfile
from resume_forge.services.errors import InputRejectedError, UnreadableDocumentError

logger = logging.getLogger(__name__)


def ensure_valid_pdf(content: bytes) -> RawDocument:
    result = validate_pdf_buffer(content)
    if not result.valid:
        logger.info("pdf_rejected reason=%s bytes=%s", result.error, len(content or b""))
        raise InputRejectedError(result.error or "Invalid PDF")
    return RawDocument(content=content)


def without_page_markers(text: str) -> str:
    return "\n".join(line for line in (text or "").splitlines() if not is_page_marker(line))


def source_is_corrupted(artifact: ParsedArtifact) -> bool:
    return is_corrupted_text(without_page_markers(artifact.text))


async def load_document(
    raw: RawDocument,
    *,
    completion_service: CompletionService | None = None,
    strategies: Sequence[ExtractionStrategy] | None = None,
) -> ParsedArtifact:
    """Parse a validated upload and gate it on text quality.

    Corrupted winning text is reported as an unreadable document, the same
    outcome as an image-only PDF whose OCR produced nothing usable.
    """
    artifact = await parse_document(raw, completion_service=completion_service, strategies=strategies)
    if source_is_corrupted(artifact):
        logger.warning("source_text_corrupted source=%s chars=%s", artifact.source, len(artifact.text))
        raise UnreadableDocumentError()
    return artifact


def profile_from_artifact(artifact: ParsedArtifact) -> tuple[str, NormalizedProfile]:
    text = sanitize_text(artifact.text)
    try:
        return text, normalize_profile(text)
    except ValueError as exc:
        logger.warning("normalize_failed source=%s: %s", artifact.source, exc)
        raise UnreadableDocumentError() from exc


def experience_source(profile: NormalizedProfile, text: str) -> str:
    return profile.section("EXPERIENCE", "VOLUNTEER") or text


async def extract_document_text(
    content: bytes,
    *,
    completion_service: CompletionService | None = None,
    strategies: Sequence[ExtractionStrategy] | None = None,
) -> ExtractTextResponse:
    raw = ensure_valid_pdf(content)
    artifact = await parse_document(raw, completion_service=completion_service, strategies=strategies)
    structure = None
    if artifact.structure is not None:
        structure = artifact.structure.model_dump(mode="json")
        logger.debug("extract_structure json=%s", export_tree_json(artifact.structure)[:500])
    return ExtractTextResponse(
        text=artifact.text,
        source=artifact.source,
        page_count=artifact.page_count,
        char_count=len(artifact.text),
        corrupted=source_is_corrupted(artifact),
        has_ocr=bool(artifact.ocr_text),
        structure=structure,
        warnings=list(artifact.warnings),
    )


async def normalize_resume_document(
    content: bytes,
    *,
    completion_service: CompletionService | None = None,
    strategies: Sequence[ExtractionStrategy] | None = None,
    today: date | None = None,
) -> NormalizeResumeResponse:
    artifact = await load_document(ensure_valid_pdf(content), completion_service=completion_service, strategies=strategies)
    text, profile = profile_from_artifact(artifact)
    experience = calculate_experience(experience_source(profile, text), today=today)
    return NormalizeResumeResponse(
        profile=profile,
        markdown=format_profile(profile),
        experience=experience,
        source=artifact.source,
    )
