from __future__ import annotations

import re
from typing import Any

from resume_forge.core.tuning import get_tuning_value
from resume_forge.normalize.normalize_resume import Normalizer
from resume_forge.normalize.utils import _EMAIL_RE
from resume_forge.schemas.normalized import ResumeScore, ScoreCategory

_PHONE_RE = re.compile(r"\+?\(?\d{3}\)?[-\s.]?\d{3}[-\s.]?\d{4,6}|\+\d{1,3}[\s.-]?\d{2,4}(?:[\s.-]?\d{2,4}){2,4}")
_LINKEDIN_RE = re.compile(r"linkedin\.com/in/", re.IGNORECASE)
_METRIC_RE = re.compile(r"\d+(?:\.\d+)?\s*%|[$€£]\s?\d[\d,.]*\s*[kKmMbB]?|\d+\s*\+|\bincreased by\b|\breduced by\b|\bsaved\b|\bgenerated\b", re.IGNORECASE)

SCORED_SECTIONS = ("EXPERIENCE", "EDUCATION", "SKILLS", "SUMMARY", "PROJECTS")
STRONG_VERBS = (
    "accelerated", "achieved", "architected", "automated", "built", "created", "delivered", "designed",
    "developed", "directed", "enhanced", "established", "expanded", "generated", "implemented",
    "improved", "increased", "initiated", "launched", "led", "managed", "maximized", "mentored",
    "migrated", "optimized", "orchestrated", "reduced", "resolved", "scaled", "spearheaded",
    "streamlined", "structured", "transformed",
)
_VERB_RES = tuple((verb, re.compile(rf"\b{verb}\b", re.IGNORECASE)) for verb in STRONG_VERBS)
_normalizer = Normalizer()


def _cfg(path: str, default: Any) -> Any:
    return get_tuning_value(f"scorer.{path}", default)


def _tiered(count: int, tiers: list[list[int]], cap: int) -> int:
    for minimum, points in tiers:
        if count >= minimum:
            return min(int(points), cap)
    return 0


def _grade(score: int) -> str:
    for minimum, grade in _cfg("grades", [[90, "A+"], [80, "A"], [70, "B"], [60, "C"], [50, "D"], [0, "F"]]):
        if score >= minimum:
            return str(grade)
    return "F"


def _score_contact(text: str) -> tuple[ScoreCategory, list[str]]:
    cap = int(_cfg("contact_info.max", 15))
    per_item = int(_cfg("contact_info.per_item", 5))
    checks = (
        ("email address", bool(_EMAIL_RE.search(text))),
        ("phone number", bool(_PHONE_RE.search(text))),
        ("LinkedIn profile", bool(_LINKEDIN_RE.search(text))),
    )
    missing = [label for label, present in checks if not present]
    score = min(cap, per_item * (len(checks) - len(missing)))
    notes = [f"Missing {label}" for label in missing]
    tips = [f"Fix contact info: {', '.join(notes)}"] if missing else []
    return ScoreCategory(score=score, max=cap, notes=notes), tips


def _found_sections(text: str) -> set[str]:
    found: set[str] = set()
    for line in text.splitlines():
        header = _normalizer.match_header(line)
        if header is not None:
            found.add(header[0])
    return found


def _score_sections(text: str) -> tuple[ScoreCategory, list[str]]:
    cap = int(_cfg("sections.max", 25))
    per_item = int(_cfg("sections.per_item", 5))
    found = _found_sections(text)
    missing = [key.title() for key in SCORED_SECTIONS if key not in found]
    score = min(cap, per_item * (len(SCORED_SECTIONS) - len(missing)))
    notes = [f"Missing section: {name}" for name in missing]
    tips = [f"Consider adding these sections: {', '.join(missing)}"] if missing else []
    return ScoreCategory(score=score, max=cap, notes=notes), tips


def _score_length(text: str) -> tuple[ScoreCategory, list[str]]:
    cap = int(_cfg("content_length.max", 10))
    min_words = int(_cfg("content_length.min_words", 150))
    max_words = int(_cfg("content_length.max_words", 1000))
    words = len(text.split())
    if words < min_words:
        score = int(_cfg("content_length.short_score", 2))
        return (
            ScoreCategory(score=min(cap, score), max=cap, notes=[f"Too short ({words} words)"]),
            ["Your resume is very short. Add more detail about your experience."],
        )
    if words > max_words:
        score = int(_cfg("content_length.long_score", 5))
        return (
            ScoreCategory(score=min(cap, score), max=cap, notes=[f"Too long ({words} words)"]),
            ["Your resume might be too long. Aim for concise, impactful bullets."],
        )
    return ScoreCategory(score=cap, max=cap, notes=[f"Optimal length ({words} words)"]), []


def _score_metrics(text: str) -> tuple[ScoreCategory, list[str]]:
    cap = int(_cfg("quantifiable_metrics.max", 25))
    count = len(_METRIC_RE.findall(text))
    score = _tiered(count, _cfg("quantifiable_metrics.tiers", [[5, 25], [3, 15], [1, 5]]), cap)
    tips = [] if count else ["Add numbers that prove your impact (e.g. 'Increased revenue by 20%')."]
    return ScoreCategory(score=score, max=cap, notes=[f"{count} quantified result(s)"]), tips


def _score_verbs(text: str) -> tuple[ScoreCategory, list[str]]:
    cap = int(_cfg("action_verbs.max", 25))
    used = [verb for verb, pattern in _VERB_RES if pattern.search(text)]
    score = _tiered(len(used), _cfg("action_verbs.tiers", [[10, 25], [5, 15], [2, 5]]), cap)
    tips = [] if len(used) >= 2 else ["Use strong action verbs like 'Architected' or 'Spearheaded' instead of passive language."]
    return ScoreCategory(score=score, max=cap, notes=[f"{len(used)} distinct action verb(s)"]), tips


def calculate_resume_score(text: str) -> ResumeScore:
    """Deterministic rubric score for a resume's text."""
    text = text or ""
    breakdown: dict[str, ScoreCategory] = {}
    tips: list[str] = []
    for name, scorer in (
        ("contact_info", _score_contact),
        ("sections", _score_sections),
        ("content_length", _score_length),
        ("quantifiable_metrics", _score_metrics),
        ("action_verbs", _score_verbs),
    ):
        category, category_tips = scorer(text)
        breakdown[name] = category
        tips.extend(category_tips)

    total = sum(item.score for item in breakdown.values())
    if total > 100:
        # Keep the breakdown consistent with the clamped total.
        overflow = total - 100
        for name in reversed(list(breakdown)):
            take = min(overflow, breakdown[name].score)
            breakdown[name] = breakdown[name].model_copy(update={"score": breakdown[name].score - take})
            overflow -= take
            if not overflow:
                break
        total = 100

    return ResumeScore(score=total, grade=_grade(total), breakdown=breakdown, tips=tips[:3])
