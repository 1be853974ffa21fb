from __future__ import annotations

import asyncio
import logging
import re
from io import BytesIO

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from resume_forge.core.config import settings

from .models import StrategyResult

logger = logging.getLogger(__name__)

_TABLE_BORDER_RE = re.compile(r"[|│┃┆┇┊┋╎╏║]+")
_RULE_LINE_RE = re.compile(r"^[\s\-_=─━+*~.]{3,}$")


def render_pages(content: bytes, *, scale: float = 1.5, max_pages: int | None = None) -> list[bytes]:
    """Render PDF pages to PNG bytes in page order.

    Returns an empty list if the document cannot be rendered.
    """
    images: list[bytes] = []
    try:
        with fitz.open(stream=content, filetype="pdf") as doc:
            matrix = fitz.Matrix(scale, scale)
            for index, page in enumerate(doc):
                if max_pages is not None and index >= max_pages:
                    break
                pixmap = page.get_pixmap(matrix=matrix, alpha=False)
                images.append(pixmap.tobytes("png"))
    except Exception as exc:  # noqa: BLE001
        logger.warning("pdf_render_failed pages_rendered=%s: %s", len(images), exc)
        return []
    return images


def clean_ocr_text(text: str) -> str:
    lines: list[str] = []
    for raw_line in text.splitlines():
        line = _TABLE_BORDER_RE.sub(" ", raw_line)
        line = re.sub(r"[ \t]+", " ", line).strip()
        if not line or _RULE_LINE_RE.match(line):
            continue
        lines.append(line)
    return "\n".join(lines)


def ocr_image(png: bytes, *, language: str = "eng") -> str:
    with Image.open(BytesIO(png)) as image:
        return pytesseract.image_to_string(image, lang=language)


def _ocr_pages(images: list[bytes], language: str) -> str:
    sections: list[str] = []
    for page_no, png in enumerate(images, start=1):
        page_text = clean_ocr_text(ocr_image(png, language=language))
        if page_text:
            sections.append(f"--- Page {page_no} (OCR) ---\n{page_text}")
    return "\n\n".join(sections)


class OcrStrategy:
    """Renders each page and runs Tesseract over the bitmaps."""

    name = "ocr"

    def __init__(
        self,
        *,
        language: str | None = None,
        scale: float | None = None,
        max_pages: int | None = None,
    ) -> None:
        self._language = language or settings.ocr_language
        self._scale = scale or settings.ocr_render_scale
        self._max_pages = max_pages if max_pages is not None else settings.ocr_max_pages

    async def extract(self, content: bytes) -> StrategyResult:
        images = await asyncio.to_thread(render_pages, content, scale=self._scale, max_pages=self._max_pages)
        if not images:
            return StrategyResult(name=self.name, error="Could not render PDF pages for OCR.")

        try:
            text = await asyncio.to_thread(_ocr_pages, images, self._language)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as exc:
            logger.warning("ocr_failed pages=%s: %s", len(images), exc)
            return StrategyResult(name=self.name, images=images, page_count=len(images), error=f"OCR failed: {exc}")

        return StrategyResult(
            name=self.name,
            text=text,
            ocr_text=text or None,
            images=images,
            page_count=len(images),
        )
