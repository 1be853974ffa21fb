from __future__ import annotations

import asyncio
import logging
from io import BytesIO

import fitz  # PyMuPDF
from pypdf import PdfReader

from .models import StrategyResult

logger = logging.getLogger(__name__)


def _extract_text_layer(content: bytes) -> tuple[str, int]:
    reader = PdfReader(BytesIO(content))
    text_parts: list[str] = []
    for page in reader.pages:
        page_text = (page.extract_text() or "").strip()
        if page_text:
            text_parts.append(page_text)
    return "\n\n".join(text_parts), len(reader.pages)


def _extract_plain_text(content: bytes) -> tuple[str, int]:
    with fitz.open(stream=content, filetype="pdf") as doc:
        text_parts = [page.get_text("text").strip() for page in doc]
        return "\n\n".join(part for part in text_parts if part), doc.page_count


class TextLayerStrategy:
    """Reads the embedded text layer with pypdf."""

    name = "text-layer"

    async def extract(self, content: bytes) -> StrategyResult:
        try:
            text, page_count = await asyncio.to_thread(_extract_text_layer, content)
        except Exception as exc:  # noqa: BLE001
            logger.warning("text_layer_extract_failed: %s", exc)
            return StrategyResult(name=self.name, error=f"PDF text extraction failed: {exc}")
        if not text.strip():
            return StrategyResult(name=self.name, page_count=page_count, error="No extractable text found in PDF.")
        return StrategyResult(name=self.name, text=text, page_count=page_count)


class PlainTextFloorStrategy:
    """Last-resort extractor used when every primary strategy came back empty."""

    name = "floor"

    async def extract(self, content: bytes) -> StrategyResult:
        try:
            text, page_count = await asyncio.to_thread(_extract_plain_text, content)
        except Exception as exc:  # noqa: BLE001
            logger.warning("floor_extract_failed: %s", exc)
            return StrategyResult(name=self.name, error=f"Fallback text extraction failed: {exc}")
        if not text.strip():
            return StrategyResult(name=self.name, page_count=page_count, error="No extractable text found in PDF.")
        return StrategyResult(name=self.name, text=text, page_count=page_count)
