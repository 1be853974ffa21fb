from __future__ import annotations

import re

# Square-bracket tokens, excluding the label of a markdown link ``[text](url)``.
_BRACKET_TOKEN_RE = re.compile(r"\[[^\[\]\n]*\](?!\()")
_SALUTATION_PLACEHOLDER_RE = re.compile(
    r"^([ \t]*(?:Dear|Hello|Hi|To)\b[ \t]*)(?:\[[^\[\]\n]*\]|hiring manager['’]?s? name\b)",
    re.IGNORECASE | re.MULTILINE,
)

FILLER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bhiring manager['’]?s? name\b", re.IGNORECASE),
    re.compile(r"\blorem ipsum(?: dolor sit amet)?\b", re.IGNORECASE),
    re.compile(r"\byour name here\b", re.IGNORECASE),
    re.compile(r"\b(?:company|employer) name here\b", re.IGNORECASE),
    re.compile(r"\byour (?:address|phone number|email(?: address)?|city, state) here\b", re.IGNORECASE),
    re.compile(r"\binsert\b[^.\n\[\]]{0,40}?\bhere\b", re.IGNORECASE),
    re.compile(r"\b(?:to be completed|fill in later)\b", re.IGNORECASE),
)


def _placeholder_patterns() -> tuple[re.Pattern[str], ...]:
    return (_BRACKET_TOKEN_RE, *FILLER_PATTERNS)


def find_placeholders(text: str) -> list[str]:
    if not text:
        return []
    found: list[str] = []
    for pattern in _placeholder_patterns():
        found.extend(match.group(0) for match in pattern.finditer(text))
    return found


def contains_placeholders(text: str) -> bool:
    if not text:
        return False
    return any(pattern.search(text) for pattern in _placeholder_patterns())


def strip_placeholders(text: str) -> str:
    """Remove placeholder spans; every other character is left untouched."""
    if not text:
        return text
    cleaned = text
    while True:
        previous = cleaned
        for pattern in _placeholder_patterns():
            cleaned = pattern.sub("", cleaned)
        if cleaned == previous:
            return cleaned


def _dedupe_paragraphs(text: str) -> str:
    seen: set[str] = set()
    unique: list[str] = []
    for paragraph in re.split(r"\n{2,}", text):
        key = re.sub(r"[^\w\s]", "", paragraph.lower())
        key = re.sub(r"\s+", " ", key).strip()
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(paragraph.strip())
    return "\n\n".join(unique)


def sanitize_cover_letter(text: str) -> str:
    """Strip placeholders, tidy the gaps they leave and drop repeated paragraphs.

    A placeholder addressee in the greeting becomes ``Hiring Manager``.
    """
    if not text:
        return text
    cleaned = _SALUTATION_PLACEHOLDER_RE.sub(lambda match: f"{match.group(1).rstrip()} Hiring Manager", text)
    cleaned = strip_placeholders(cleaned)
    lines: list[str] = []
    for line in cleaned.split("\n"):
        tidy = re.sub(r"[ \t]{2,}", " ", line).strip()
        tidy = re.sub(r"\s+([,.;:!?])", r"\1", tidy)
        if tidy in {",", ".", ":", ";"}:
            tidy = ""
        lines.append(tidy)
    cleaned = re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()
    return _dedupe_paragraphs(cleaned)


def tidy_stripped_markdown(text: str) -> str:
    """Collapse blank runs and doubled spaces left behind after stripping."""
    lines = [re.sub(r"(?<=\S)[ \t]{2,}(?=\S)", " ", line).rstrip() for line in text.split("\n")]
    lines = [line for line in lines if line.strip() not in {"-", "*", "•"}]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()
