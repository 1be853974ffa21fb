from __future__ import annotations

import re

_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►-–—*·"
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]|(?:\d+[\.\)]))\s+")
_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PHONE_RE = re.compile(r"\+?\d[\d\s().-]{7,}\d")
_URL_RE = re.compile(r"(?:https?://|www\.|linkedin\.com|github\.com)", re.IGNORECASE)
_MARKDOWN_HEADING_RE = re.compile(r"^\s*#{1,6}\s+")
_PAGE_MARKER_RE = re.compile(r"^-{2,}\s*Page\s+\d+(?:\s*\([^)]*\))?\s*-{2,}$", re.IGNORECASE)
_SEGMENT_SPLIT_RE = re.compile(r"\s*(?:[|•·]|\t|\s{3,})\s*")


def normalize_line(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip()


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line).strip()


def strip_heading_markup(line: str) -> str:
    """Remove markdown heading/bold markers and a trailing colon."""
    stripped = _MARKDOWN_HEADING_RE.sub("", line)
    stripped = stripped.strip().strip("*_").strip()
    return stripped.rstrip(":").strip()


def is_markdown_heading(line: str) -> bool:
    return bool(_MARKDOWN_HEADING_RE.match(line))


def is_page_marker(line: str) -> bool:
    return bool(_PAGE_MARKER_RE.match(normalize_line(line)))


def split_segments(line: str) -> list[str]:
    """Split a contact-style line (``a | b • c``) into its parts."""
    return [part.strip() for part in _SEGMENT_SPLIT_RE.split(line) if part and part.strip()]


def is_contact_or_url(line: str) -> bool:
    stripped = normalize_line(line)
    if not stripped:
        return False
    return bool(_EMAIL_RE.search(stripped) or _PHONE_RE.search(stripped) or _URL_RE.search(stripped))


def dedupe_preserve_order(items: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for item in items:
        key = item.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        ordered.append(item.strip())
    return ordered
