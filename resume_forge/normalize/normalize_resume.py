from __future__ import annotations

import re
from dataclasses import dataclass, field

from resume_forge.schemas.normalized import CATCH_ALL_SECTION, CANONICAL_SECTIONS, NormalizedProfile

from .utils import (
    _EMAIL_RE,
    is_contact_or_url,
    is_markdown_heading,
    is_page_marker,
    normalize_line,
    split_segments,
    strip_heading_markup,
)

DEFAULT_SECTION_SYNONYMS: dict[str, tuple[str, ...]] = {
    "SUMMARY": (
        "summary", "professional summary", "career summary", "executive summary", "profile",
        "professional profile", "objective", "career objective", "about", "about me",
    ),
    "EXPERIENCE": (
        "experience", "work experience", "professional experience", "employment", "employment history",
        "work history", "career history", "relevant experience", "professional background",
    ),
    "EDUCATION": (
        "education", "academic background", "education and training", "academic qualifications",
        "education & training",
    ),
    "SKILLS": (
        "skills", "technical skills", "core competencies", "competencies", "key skills", "skills & tools",
        "skills and tools", "technologies", "tech stack", "areas of expertise", "expertise", "core skills",
    ),
    "PROJECTS": ("projects", "personal projects", "key projects", "selected projects", "academic projects"),
    "CERTIFICATIONS": (
        "certifications", "certificates", "licenses", "licenses & certifications",
        "licenses and certifications", "certifications & licenses", "certifications and licenses",
    ),
    "AWARDS": ("awards", "achievements", "honors", "honors & awards", "awards & achievements", "accomplishments"),
    "PUBLICATIONS": ("publications", "papers", "research"),
    "LANGUAGES": ("languages", "language skills"),
    "VOLUNTEER": ("volunteer", "volunteering", "volunteer experience", "community involvement"),
}

# Recognized headers with no canonical home; their content is kept under OTHER.
DEFAULT_UNMAPPED_HEADERS: tuple[str, ...] = (
    "interests", "hobbies", "references", "activities", "extracurricular activities", "courses",
    "coursework", "relevant coursework", "training", "affiliations", "memberships",
    "additional information", "strengths", "other",
)

DEFAULT_PHONE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\+\d{1,3}[\s.-]?\(?\d{1,4}\)?(?:[\s.-]?\d{2,4}){2,4}"),
    re.compile(r"\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}"),
)

_HONORIFIC_RE = re.compile(r"^(?:mr|mrs|ms|miss|dr|prof)\.?\s+", re.IGNORECASE)
_NAME_RE = re.compile(r"^[A-Za-zÀ-ÖØ-öø-ÿ][A-Za-zÀ-ÖØ-öø-ÿ.'\-]*(?:\s+[A-Za-zÀ-ÖØ-öø-ÿ][A-Za-zÀ-ÖØ-öø-ÿ.'\-]*){1,4}$")
_LINKEDIN_RE = re.compile(r"(?:https?://)?(?:[a-z]{2,3}\.)?linkedin\.com/in/[A-Za-z0-9_%-]+/?", re.IGNORECASE)
_LOCATION_RE = re.compile(r"^[A-Z][A-Za-zÀ-ÿ.'\- ]{1,40},\s*[A-Z][A-Za-zÀ-ÿ.\- ]{1,30}$")
_HEADER_REGION_LINES = 8
_GENERIC_OTHER_TITLES = {"additional information", "other"}
_OTHER_TITLE = "Additional Information"


@dataclass(frozen=True)
class NormalizerRules:
    """Pattern set used by :class:`Normalizer`; swap pieces for other locales."""

    section_synonyms: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_SECTION_SYNONYMS))
    unmapped_headers: tuple[str, ...] = DEFAULT_UNMAPPED_HEADERS
    phone_patterns: tuple[re.Pattern[str], ...] = DEFAULT_PHONE_PATTERNS
    email_pattern: re.Pattern[str] = _EMAIL_RE
    linkedin_pattern: re.Pattern[str] = _LINKEDIN_RE
    location_pattern: re.Pattern[str] = _LOCATION_RE
    min_phone_digits: int = 10
    max_phone_digits: int = 15

    def header_lookup(self) -> dict[str, str]:
        lookup: dict[str, str] = {}
        for canonical, synonyms in self.section_synonyms.items():
            if canonical not in CANONICAL_SECTIONS:
                raise ValueError(f"'{canonical}' is not a canonical section name")
            for synonym in synonyms:
                lookup[synonym.lower()] = canonical
        for header in self.unmapped_headers:
            lookup.setdefault(header.lower(), CATCH_ALL_SECTION)
        return lookup


DEFAULT_RULES = NormalizerRules()


class Normalizer:
    def __init__(self, rules: NormalizerRules = DEFAULT_RULES) -> None:
        self._rules = rules
        self._headers = rules.header_lookup()

    def match_header(self, line: str) -> tuple[str, str] | None:
        """Return ``(canonical_key, header_text)`` when ``line`` is a section header."""
        text = strip_heading_markup(normalize_line(line))
        if not text or len(text) > 48:
            return None
        key = re.sub(r"\s+", " ", text.lower())
        canonical = self._headers.get(key)
        if canonical is not None:
            return canonical, text
        if is_markdown_heading(line) and not line.lstrip().startswith("# "):
            return CATCH_ALL_SECTION, text
        return None

    def find_email(self, text: str) -> str | None:
        match = self._rules.email_pattern.search(text)
        return match.group(0) if match else None

    def find_phone(self, text: str) -> str | None:
        for pattern in self._rules.phone_patterns:
            for match in pattern.finditer(text):
                candidate = match.group(0).strip()
                digits = re.sub(r"\D", "", candidate)
                if self._rules.min_phone_digits <= len(digits) <= self._rules.max_phone_digits:
                    return candidate
        return None

    def find_linkedin(self, text: str) -> str | None:
        match = self._rules.linkedin_pattern.search(text)
        if not match:
            return None
        value = match.group(0).rstrip("/")
        if not value.lower().startswith("http"):
            value = f"https://{value}"
        return value

    def find_location(self, lines: list[str]) -> str | None:
        for line in lines:
            for segment in split_segments(line):
                if any(char.isdigit() for char in segment) or "@" in segment:
                    continue
                if self._rules.location_pattern.match(segment):
                    return segment
        return None

    @staticmethod
    def _clean_name(line: str) -> str | None:
        candidate = strip_heading_markup(line)
        segments = split_segments(candidate)
        candidate = segments[0] if segments else ""
        candidate = _HONORIFIC_RE.sub("", candidate).strip()
        if not candidate or any(char.isdigit() for char in candidate) or "," in candidate:
            return None
        if not _NAME_RE.match(candidate):
            return None
        return candidate

    def _find_name(self, header_lines: list[str]) -> str | None:
        for line in header_lines:
            if self.match_header(line) is not None:
                return None
            if is_contact_or_url(line):
                continue
            return self._clean_name(line)
        return None

    def normalize(self, text: str) -> NormalizedProfile:
        if text is None or not text.strip():
            raise ValueError("Resume text is empty")

        lines = [line.rstrip() for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n")]
        lines = [line for line in lines if not is_page_marker(line)]
        non_blank = [line for line in lines if line.strip()]
        header_region = non_blank[:_HEADER_REGION_LINES]

        email = self.find_email(text)
        phone = self.find_phone("\n".join(header_region)) or self.find_phone(text)
        linkedin = self.find_linkedin(text)
        location = self.find_location(header_region)
        name = self._find_name(header_region)

        preamble: list[str] = []
        blocks: list[tuple[str, list[str]]] = []
        current: list[str] | None = None
        name_consumed = False

        for line in lines:
            header = self.match_header(line)
            if header is not None:
                canonical, header_text = header
                current = []
                if canonical == CATCH_ALL_SECTION and header_text.lower() not in _GENERIC_OTHER_TITLES:
                    current.append(f"{header_text}:")
                blocks.append((canonical, current))
                continue
            if current is not None:
                current.append(line)
                continue

            stripped = normalize_line(line)
            if not stripped:
                preamble.append("")
                continue
            if name and not name_consumed and self._clean_name(stripped) == name:
                name_consumed = True
                continue
            if is_contact_or_url(stripped):
                continue
            if location and stripped == location:
                continue
            preamble.append(stripped)

        sections: dict[str, str] = {}
        for canonical, body_lines in blocks:
            body = _join_body(body_lines)
            if not body or (body.endswith(":") and "\n" not in body):
                continue
            if canonical in sections:
                sections[canonical] = f"{sections[canonical]}\n\n{body}"
            else:
                sections[canonical] = body

        preamble_text = _join_body(preamble)
        if preamble_text:
            if not blocks:
                sections[CATCH_ALL_SECTION] = preamble_text
            elif "SUMMARY" not in sections and _looks_like_prose(preamble_text):
                sections["SUMMARY"] = preamble_text
            elif CATCH_ALL_SECTION in sections:
                sections[CATCH_ALL_SECTION] = f"{preamble_text}\n\n{sections[CATCH_ALL_SECTION]}"
            else:
                sections[CATCH_ALL_SECTION] = preamble_text

        ordered = {key: sections[key] for key in CANONICAL_SECTIONS if key in sections}
        return NormalizedProfile(
            name=name,
            email=email,
            phone=phone,
            linkedin=linkedin,
            location=location,
            sections=ordered,
            raw_text=text,
        )


def _join_body(lines: list[str]) -> str:
    body = "\n".join(line.rstrip() for line in lines)
    return re.sub(r"\n{3,}", "\n\n", body).strip()


def _looks_like_prose(text: str) -> bool:
    words = text.split()
    if len(words) < 12:
        return False
    return any(len(line.split()) >= 6 for line in text.splitlines())


_default_normalizer = Normalizer()


def normalize_profile(text: str, rules: NormalizerRules | None = None) -> NormalizedProfile:
    normalizer = Normalizer(rules) if rules is not None else _default_normalizer
    return normalizer.normalize(text)


def format_profile(profile: NormalizedProfile) -> str:
    """Render a profile as markdown: name heading, contact line, one block per section."""
    parts: list[str] = []
    if profile.name:
        parts.append(f"# {profile.name}")
    contact = [value for value in (profile.email, profile.phone, profile.linkedin, profile.location) if value]
    if contact:
        parts.append(" | ".join(contact))
    for key in CANONICAL_SECTIONS:
        body = profile.sections.get(key)
        if not body:
            continue
        title = _OTHER_TITLE if key == CATCH_ALL_SECTION else key.title()
        parts.append(f"## {title}\n{body}")
    return "\n\n".join(parts).strip()
