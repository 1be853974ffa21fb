from __future__ import annotations

import re
from dataclasses import dataclass

from resume_forge.normalize.utils import _EMAIL_RE
from resume_forge.schemas.normalized import ExperienceEstimate
from resume_forge.taxonomy import get_default_taxonomy_provider

_PHONE_RE = re.compile(r"\+?\(?\d[\d\s().-]{8,}\d")
_URL_RE = re.compile(r"(?:https?://|www\.)[^\s)\]>]+", re.IGNORECASE)
_YEAR_RE = re.compile(r"(?<!\d)(?:19|20)\d{2}(?!\d)")
_ORG_RE = re.compile(
    r"\b((?:[A-Z][A-Za-z0-9&'\-]*\s+){0,3}[A-Z][A-Za-z0-9&'\-]*),?\s+(?:Inc|LLC|Ltd|Corp|Corporation|GmbH|Limited)\b\.?"
)
_YEARS_CLAIM_RE = re.compile(r"(\d+(?:\.\d+)?)\s*\+?\s*(?:years?|yrs?)\b", re.IGNORECASE)


@dataclass(frozen=True)
class ContentWarning:
    field: str
    value: str
    message: str


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def _normalize_url(value: str) -> str:
    return re.sub(r"^(?:https?://)?(?:www\.)?", "", value.lower()).rstrip("/.,;")


def validate_generated_content(
    generated: str,
    source: str,
    *,
    experience: ExperienceEstimate | None = None,
) -> list[ContentWarning]:
    """List claims in ``generated`` that have no support in ``source``.

    The result is advisory; callers log it and keep the generated text.
    """
    warnings: list[ContentWarning] = []
    if not generated:
        return warnings
    source = source or ""
    source_lower = source.lower()

    taxonomy = get_default_taxonomy_provider()
    source_skills = set(taxonomy.find_skills(source))
    for skill in taxonomy.find_skills(generated):
        if skill not in source_skills:
            warnings.append(ContentWarning("skill", skill, f"Skill '{skill}' does not appear in the source resume"))

    source_emails = {email.lower() for email in _EMAIL_RE.findall(source)}
    for email in dict.fromkeys(_EMAIL_RE.findall(generated)):
        if email.lower() not in source_emails:
            warnings.append(ContentWarning("email", email, "E-mail address not present in the source resume"))

    source_phone_digits = {_digits(phone)[-10:] for phone in _PHONE_RE.findall(source)}
    for phone in dict.fromkeys(_PHONE_RE.findall(generated)):
        digits = _digits(phone)
        if 10 <= len(digits) <= 15 and digits[-10:] not in source_phone_digits:
            warnings.append(ContentWarning("phone", phone.strip(), "Phone number not present in the source resume"))

    source_urls = {_normalize_url(url) for url in _URL_RE.findall(source)}
    for url in dict.fromkeys(_URL_RE.findall(generated)):
        if _normalize_url(url) not in source_urls and _normalize_url(url) not in source_lower:
            warnings.append(ContentWarning("url", url, "Link not present in the source resume"))

    source_years = set(_YEAR_RE.findall(source))
    for year in dict.fromkeys(_YEAR_RE.findall(generated)):
        if year not in source_years:
            warnings.append(ContentWarning("date", year, f"Year {year} does not appear in the source resume"))

    for match in _ORG_RE.finditer(generated):
        organisation = match.group(1).strip()
        if organisation.lower() not in source_lower:
            warnings.append(
                ContentWarning("company", match.group(0).strip(), "Organisation not mentioned in the source resume")
            )

    if experience is not None and experience.total_years > 0:
        for match in _YEARS_CLAIM_RE.finditer(generated):
            claimed = float(match.group(1))
            if claimed > experience.total_years + 0.5:
                warnings.append(
                    ContentWarning(
                        "experience",
                        match.group(0).strip(),
                        f"Claims {claimed:g} years but the source supports {experience.total_years:g}",
                    )
                )
    return warnings
