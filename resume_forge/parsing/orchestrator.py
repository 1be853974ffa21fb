from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

from resume_forge.ai.types import CompletionService
from resume_forge.core.config import settings
from resume_forge.services.errors import UnreadableDocumentError

from .models import ParsedArtifact, RawDocument, StrategyResult
from .ocr import OcrStrategy
from .structure import VisionStructureStrategy
from .text_extractor import PlainTextFloorStrategy, TextLayerStrategy

logger = logging.getLogger(__name__)

# Order in which strategy text is preferred when several succeed.
TEXT_PREFERENCE = ("vision", "ocr", "text-layer")


class ExtractionStrategy(Protocol):
    name: str

    async def extract(self, content: bytes) -> StrategyResult: ...


def default_strategies(completion_service: CompletionService | None = None) -> list[ExtractionStrategy]:
    strategies: list[ExtractionStrategy] = [TextLayerStrategy()]
    if settings.ocr_enabled:
        strategies.append(OcrStrategy())
    if completion_service is not None and settings.vision_parsing_enabled:
        strategies.append(VisionStructureStrategy(completion_service))
    return strategies


async def _run_bounded(strategy: ExtractionStrategy, content: bytes, timeout_s: float) -> StrategyResult:
    try:
        return await asyncio.wait_for(strategy.extract(content), timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.warning("parse_strategy_timeout name=%s timeout_s=%s", strategy.name, timeout_s)
        return StrategyResult(name=strategy.name, error=f"timed out after {timeout_s:g}s")
    except Exception as exc:  # noqa: BLE001
        logger.warning("parse_strategy_failed name=%s: %s", strategy.name, exc)
        return StrategyResult(name=strategy.name, error=str(exc) or exc.__class__.__name__)


def _pick_text(results: Sequence[StrategyResult]) -> StrategyResult | None:
    by_name = {result.name: result for result in results if result.has_text}
    for name in TEXT_PREFERENCE:
        if name in by_name:
            return by_name[name]
    for result in results:
        if result.has_text:
            return result
    return None


def merge_results(results: Sequence[StrategyResult]) -> ParsedArtifact | None:
    """Combine strategy outputs; text comes from the preferred strategy that produced any."""
    winner = _pick_text(results)
    if winner is None:
        return None

    images: list[bytes] = []
    ocr_text: str | None = None
    structure = None
    page_count = 0
    warnings: list[str] = []
    for result in results:
        if result.images and not images:
            images = list(result.images)
        if result.ocr_text and ocr_text is None:
            ocr_text = result.ocr_text
        if result.structure is not None and structure is None:
            structure = result.structure
        page_count = max(page_count, result.page_count)
        if result.error:
            warnings.append(f"{result.name}: {result.error}")

    artifact = ParsedArtifact(
        text=winner.text.strip(),
        ocr_text=ocr_text,
        images=images,
        structure=structure,
        source=winner.name,
        page_count=page_count,
        warnings=warnings,
    )
    return artifact


async def parse_document(
    raw: RawDocument,
    *,
    completion_service: CompletionService | None = None,
    strategies: Sequence[ExtractionStrategy] | None = None,
    floor: ExtractionStrategy | None = None,
    strategy_timeout_s: float | None = None,
    min_chars: int | None = None,
) -> ParsedArtifact:
    """Run every extraction strategy concurrently and merge what they produce.

    Raises ``UnreadableDocumentError`` when no strategy, including the floor
    extractor, yields at least ``min_chars`` characters of text.
    """
    active = list(strategies) if strategies is not None else default_strategies(completion_service)
    timeout_s = strategy_timeout_s if strategy_timeout_s is not None else settings.parse_strategy_timeout_s
    threshold = min_chars if min_chars is not None else settings.min_document_chars

    results = list(await asyncio.gather(*(_run_bounded(item, raw.content, timeout_s) for item in active)))
    for result in results:
        logger.info(
            "parse_strategy name=%s chars=%s images=%s structure=%s error=%s",
            result.name,
            len(result.text),
            len(result.images),
            result.structure is not None,
            result.error,
        )

    artifact = merge_results(results)
    if artifact is None:
        floor_strategy = floor or PlainTextFloorStrategy()
        floor_result = await _run_bounded(floor_strategy, raw.content, timeout_s)
        logger.info("parse_floor chars=%s error=%s", len(floor_result.text), floor_result.error)
        artifact = merge_results([*results, floor_result])

    if artifact is None:
        raise UnreadableDocumentError()

    if len(artifact.text) < threshold:
        logger.warning("parse_text_too_short source=%s chars=%s min=%s", artifact.source, len(artifact.text), threshold)
        raise UnreadableDocumentError()

    logger.info("parse_complete source=%s chars=%s pages=%s", artifact.source, len(artifact.text), artifact.page_count)
    return artifact
