from __future__ import annotations

import logging
import re

from resume_forge.schemas.normalized import JobPosting, WorkMode
from resume_forge.taxonomy import get_default_taxonomy_provider

from .utils import dedupe_preserve_order, normalize_line, strip_bullet_prefix, strip_heading_markup

logger = logging.getLogger(__name__)

MAX_LIST_ITEMS = 15
MAX_BENEFITS = 10

_REQUIREMENT_HEADERS = (
    "requirements", "requirement", "qualifications", "must have", "must-have", "required",
    "what you bring", "what we're looking for", "what we are looking for", "ideal candidate",
    "basic qualifications", "minimum qualifications", "preferred qualifications", "who you are",
    "skills", "skills & experience", "required skills",
)
_RESPONSIBILITY_HEADERS = (
    "responsibilities", "key responsibilities", "duties", "what you'll do", "what you will do",
    "your role", "the role", "day to day", "in this role", "role overview",
)
_BENEFIT_HEADERS = ("benefits", "perks", "what we offer", "why join", "why join us", "compensation", "we offer")

_TITLE_LABEL_RE = re.compile(r"^(?:job\s*title|position|role|title)\s*[:|\-]\s*(.+)$", re.IGNORECASE)
_ROLE_NOUNS = (
    "Engineer", "Developer", "Designer", "Manager", "Director", "Analyst", "Architect", "Specialist",
    "Scientist", "Consultant", "Lead", "Administrator", "Coordinator", "Associate", "Executive",
    "Officer", "Representative", "Intern",
)
_ROLE_LINE_RE = re.compile(rf"\b(?:{'|'.join(_ROLE_NOUNS)})s?\b", re.IGNORECASE)
_COMPANY_PATTERNS = (
    re.compile(r"^(?:company|organization|employer)\s*[:|\-]\s*(.+)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"(?:\b[Aa]t|@|\b[Jj]oin)\s+([A-Z][A-Za-z0-9&.'\-]+(?:\s+[A-Z][A-Za-z0-9&.'\-]+){0,3})"),
    re.compile(r"\b([A-Z][A-Za-z0-9&]+(?:\s+[A-Z][A-Za-z0-9&]+){0,3})\s+is\s+(?:looking|seeking|hiring)\b"),
    re.compile(r"\b([A-Z][A-Za-z0-9]+(?:\s+[A-Z][A-Za-z0-9]+){0,3},?\s+(?:Inc|LLC|Ltd|Corp|GmbH|Corporation|Limited)\b\.?)"),
)
_COMPANY_STOPWORDS = {
    "we", "the", "our", "this", "a", "an", "engineer", "developer", "manager", "senior", "junior", "lead", "least",
}
_LOCATION_LABEL_RE = re.compile(
    r"^(?:location|office|based\s+in|work\s+location)\s*[:|\-]\s*(.+)$", re.IGNORECASE | re.MULTILINE
)
_CITY_STATE_RE = re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?,\s*(?:[A-Z]{2}|[A-Z][a-z]+))\b")
_WORK_MODE_PATTERNS: tuple[tuple[re.Pattern[str], WorkMode], ...] = (
    (re.compile(r"\bhybrid\b", re.IGNORECASE), "hybrid"),
    (re.compile(r"\b(?:fully\s+|100%\s*)?remote\b|\bwork\s+from\s+home\b", re.IGNORECASE), "remote"),
    (re.compile(r"\b(?:on-?site|in-?office|in\s+person)\b", re.IGNORECASE), "onsite"),
)
_SALARY_PATTERNS = (
    re.compile(r"[$€£]\s?[\d,.]+\s*[kK]?\s*(?:-|–|to)\s*[$€£]?\s?[\d,.]+\s*[kK]?(?:\s*(?:per\s+)?(?:year|yr|annually|month|hour))?", re.IGNORECASE),
    re.compile(r"\b\d{2,3}\s*[kK]\s*(?:-|–|to)\s*\d{2,3}\s*[kK](?:\s*(?:USD|EUR|GBP|INR))?"),
    re.compile(r"(?:₹|Rs\.?|INR)\s*[\d,]+(?:\s*(?:-|–|to)\s*(?:₹|Rs\.?|INR)?\s*[\d,]+)?(?:\s*(?:LPA|per\s+annum|per\s+month))?", re.IGNORECASE),
)
_EXPERIENCE_REQ_RE = re.compile(
    r"\b\d+\s*(?:\+|(?:-|–|to)\s*\d+)?\s*(?:years?|yrs?)(?:\s+of)?(?:\s+(?:professional\s+|relevant\s+|hands-on\s+)?experience)?",
    re.IGNORECASE,
)
_EDUCATION_REQ_RE = re.compile(
    r"\b(?:Bachelor['’]?s?|Master['’]?s?|Ph\.?D\.?|MBA|B\.S\.|M\.S\.|degree)\b[^.\n;]{0,80}", re.IGNORECASE
)
_KEYWORD_TOKEN_RE = re.compile(r"[a-z][a-z0-9+#.\-]*")

COMMON_ATS_TERMS = (
    "leadership", "collaboration", "communication", "problem solving", "analytical", "strategic",
    "innovative", "results-driven", "self-motivated", "detail-oriented", "time management",
    "project management", "stakeholder", "cross-functional", "ownership", "scalable", "performance",
    "optimization", "mentoring",
)
_TITLE_STOPWORDS = {"with", "and", "for", "the", "from", "full", "time", "part", "remote", "hybrid"}


def _header_kind(line: str) -> str | None:
    display = strip_heading_markup(normalize_line(line))
    text = display.lower()
    if not text or len(text) > 40:
        return None
    if text in _REQUIREMENT_HEADERS:
        return "requirements"
    if text in _RESPONSIBILITY_HEADERS:
        return "responsibilities"
    if text in _BENEFIT_HEADERS:
        return "benefits"
    if normalize_line(line).endswith(":") and len(text.split()) <= 5:
        return "other"
    if display.isupper() and len(text.split()) <= 5:
        return "other"
    return None


def _collect_sections(lines: list[str]) -> dict[str, list[str]]:
    sections: dict[str, list[str]] = {"requirements": [], "responsibilities": [], "benefits": []}
    current: str | None = None
    for raw_line in lines:
        stripped = normalize_line(raw_line)
        if not stripped:
            continue
        kind = _header_kind(raw_line)
        if kind is not None:
            current = kind if kind in sections else None
            continue
        if current is None:
            continue
        item = strip_bullet_prefix(stripped)
        if len(item) > (5 if current == "benefits" else 10):
            sections[current].append(item)
    return sections


def _find_title(lines: list[str]) -> str | None:
    for line in lines[:10]:
        match = _TITLE_LABEL_RE.match(line)
        if match:
            return _trim_title(match.group(1))
    for line in lines[:7]:
        if len(line) < 100 and _ROLE_LINE_RE.search(line) and _header_kind(line) is None:
            return _trim_title(re.sub(r"\s+at\s+.+$", "", line, flags=re.IGNORECASE))
    if lines:
        first = lines[0]
        if len(first) < 60 and not first[0].isdigit() and "@" not in first:
            return _trim_title(first)
    return None


def _trim_title(value: str) -> str | None:
    title = re.split(r"\s+[|–—]\s+|\s+-\s+|[:|(]", value.strip(), maxsplit=1)[0].strip(" .,-")
    if len(title) < 3:
        return None
    return title if len(title) <= 60 else f"{title[:55].rstrip()}..."


def _find_company(text: str) -> str | None:
    for pattern in _COMPANY_PATTERNS:
        for match in pattern.finditer(text):
            candidate = match.group(1).strip(" .,-")
            if candidate.lower() in _COMPANY_STOPWORDS or not (2 < len(candidate) < 60):
                continue
            if _ROLE_LINE_RE.fullmatch(candidate):
                continue
            return candidate
    return None


def _find_location(text: str) -> str | None:
    match = _LOCATION_LABEL_RE.search(text)
    if match:
        return match.group(1).strip()[:60]
    match = _CITY_STATE_RE.search(text)
    if match:
        return match.group(1)
    return None


def _find_work_mode(text: str) -> WorkMode:
    for pattern, mode in _WORK_MODE_PATTERNS:
        if pattern.search(text):
            return mode
    return "unknown"


def _find_first(patterns: tuple[re.Pattern[str], ...], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return None


def parse_job_posting(text: str) -> JobPosting:
    """Pull the structured fields of a job description out of free text."""
    body = (text or "").strip()
    if not body:
        return JobPosting.empty()

    lines = [normalize_line(line) for line in body.splitlines() if line.strip()]
    sections = _collect_sections(body.splitlines())
    taxonomy = get_default_taxonomy_provider()

    education = _find_first((_EDUCATION_REQ_RE,), body)
    return JobPosting(
        title=_find_title(lines),
        company=_find_company(body),
        location=_find_location(body),
        work_mode=_find_work_mode(body),
        salary_range=_find_first(_SALARY_PATTERNS, body),
        skills=taxonomy.find_skills(body),
        requirements=dedupe_preserve_order(sections["requirements"])[:MAX_LIST_ITEMS],
        responsibilities=dedupe_preserve_order(sections["responsibilities"])[:MAX_LIST_ITEMS],
        experience_required=_find_first((_EXPERIENCE_REQ_RE,), body),
        education_required=education[:100] if education else None,
        benefits=dedupe_preserve_order(sections["benefits"])[:MAX_BENEFITS],
    )


def extract_keywords(text: str, posting: JobPosting | None = None) -> list[str]:
    """Lower-case keywords: skills by frequency then first position, then title words, then ATS terms."""
    body = text or ""
    parsed = posting or parse_job_posting(body)
    mentions = get_default_taxonomy_provider().count_mentions(body)
    ranked_skills = sorted(mentions, key=lambda name: (-mentions[name][0], mentions[name][1]))

    keywords: list[str] = [skill.lower() for skill in ranked_skills]
    if parsed.title:
        for token in _KEYWORD_TOKEN_RE.findall(parsed.title.lower()):
            if len(token) > 3 and token not in _TITLE_STOPWORDS:
                keywords.append(token)
    lowered = body.lower()
    keywords.extend(term for term in COMMON_ATS_TERMS if term in lowered)
    return dedupe_preserve_order(keywords)


def parse_job_posting_safe(text: str) -> tuple[JobPosting, list[str]]:
    """Parse a job description without ever raising; failures yield empty results."""
    try:
        posting = parse_job_posting(text)
        return posting, extract_keywords(text, posting)
    except Exception as exc:  # noqa: BLE001
        logger.warning("job_description_parse_failed: %s", exc)
        return JobPosting.empty(), []


def job_summary(posting: JobPosting) -> str:
    parts: list[str] = []
    if posting.title:
        parts.append(f"**Position:** {posting.title}")
    if posting.company:
        parts.append(f"**Company:** {posting.company}")
    if posting.location:
        parts.append(f"**Location:** {posting.location}")
    if posting.work_mode != "unknown":
        parts.append(f"**Work Mode:** {posting.work_mode.capitalize()}")
    if posting.experience_required:
        parts.append(f"**Experience:** {posting.experience_required}")
    if posting.salary_range:
        parts.append(f"**Salary:** {posting.salary_range}")
    if posting.skills:
        parts.append(f"**Key Skills:** {', '.join(posting.skills[:10])}")
    return "\n".join(parts)
