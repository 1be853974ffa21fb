from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date

from resume_forge.core.tuning import get_tuning_value
from resume_forge.schemas.normalized import ExperienceEstimate

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH_NAMES = (
    r"jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sept?(?:ember)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)
_YEAR = r"(?:19|20)\d{2}"


def _date_pattern(prefix: str) -> str:
    return (
        rf"(?:(?P<{prefix}mon>{_MONTH_NAMES})\.?,?\s*(?P<{prefix}my>{_YEAR})"
        rf"|(?P<{prefix}num>0?[1-9]|1[0-2])\s*[/.]\s*(?P<{prefix}ny>{_YEAR})"
        rf"|(?P<{prefix}year>{_YEAR}))"
    )


_RANGE_RE = re.compile(
    rf"(?<![\d/]){_date_pattern('s_')}(?!\d)"
    r"\s*(?:-|–|—|to|until|till)\s*"
    rf"(?:(?P<present>present|current|now|today|date)\b|{_date_pattern('e_')}(?!\d))",
    re.IGNORECASE,
)
_YEARS_MENTION_RE = re.compile(r"(\d+(?:\.\d+)?)\s*\+?\s*(?:years?|yrs?)\b", re.IGNORECASE)


@dataclass(frozen=True)
class DateSpan:
    """Half-open month interval ``[start, end)`` counted as ``year * 12 + month - 1``."""

    start: int
    end: int

    @property
    def months(self) -> int:
        return max(0, self.end - self.start)


def _month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def _format_month(index: int) -> str:
    year, month0 = divmod(index, 12)
    return f"{calendar.month_abbr[month0 + 1]} {year}"


def _side(match: re.Match[str], prefix: str) -> tuple[int, int, bool] | None:
    """(year, month, month_known) for one side of a range."""
    if match.group(f"{prefix}mon"):
        month = _MONTHS[match.group(f"{prefix}mon")[:3].lower()]
        return int(match.group(f"{prefix}my")), month, True
    if match.group(f"{prefix}num"):
        return int(match.group(f"{prefix}ny")), int(match.group(f"{prefix}num")), True
    if match.group(f"{prefix}year"):
        return int(match.group(f"{prefix}year")), 1, False
    return None


def extract_spans(text: str, *, today: date, earliest_year: int = 1980) -> list[DateSpan]:
    today_index = _month_index(today.year, today.month)
    spans: list[DateSpan] = []
    for match in _RANGE_RE.finditer(text or ""):
        start_side = _side(match, "s_")
        if start_side is None:
            continue
        start_year, start_month, _ = start_side
        if start_year < earliest_year:
            continue
        start = _month_index(start_year, start_month)
        if start > today_index:
            continue

        if match.group("present"):
            end = today_index
        else:
            end_side = _side(match, "e_")
            if end_side is None:
                continue
            end_year, end_month, month_known = end_side
            # Month-precise ends include the named month; bare years end in January.
            end = _month_index(end_year, end_month) + (1 if month_known else 0)
            end = min(end, today_index)

        if end < start:
            continue
        spans.append(DateSpan(start=start, end=end))
    return spans


def merge_spans(spans: list[DateSpan]) -> list[DateSpan]:
    merged: list[DateSpan] = []
    for span in sorted(spans, key=lambda item: (item.start, item.end)):
        if merged and span.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = DateSpan(start=last.start, end=max(last.end, span.end))
        else:
            merged.append(span)
    return merged


def _constraints(total_years: float, *, derivable: bool) -> list[str]:
    senior_min = float(get_tuning_value("experience.senior_min_years", 3))
    lead_min = float(get_tuning_value("experience.lead_min_years", 5))

    rules: list[str] = []
    if derivable:
        rules.append(f"Do not claim more than {total_years:g} years of total professional experience.")
    else:
        rules.append("Do not state a specific number of years of experience.")
    if total_years < senior_min:
        rules.append(
            f"Do not use 'Senior' or higher seniority wording; the candidate has under {senior_min:g} years "
            "of experience unless that exact title appears in the source resume."
        )
    if total_years < lead_min:
        rules.append(
            "Do not introduce 'Lead', 'Principal', 'Staff' or 'Head of' titles that are not in the source resume."
        )
    rules.append("Keep every employer, job title and date exactly as written in the source resume.")
    return rules


def calculate_experience(text: str, *, today: date | None = None) -> ExperienceEstimate:
    """Estimate total years of experience from the date ranges in ``text``.

    Overlapping roles are merged before summing, so concurrent jobs count once.
    With no ranges the first explicit "N years" mention is used instead.
    """
    today = today or date.today()
    earliest_year = int(get_tuning_value("experience.earliest_year", 1980))

    spans = extract_spans(text or "", today=today, earliest_year=earliest_year)
    if not spans:
        mention = _YEARS_MENTION_RE.search(text or "")
        if mention:
            years = float(mention.group(1))
            return ExperienceEstimate(
                total_years=years,
                details=f"{years:g} years taken from an explicit mention ('{mention.group(0).strip()}'); no date ranges found",
                constraints=_constraints(years, derivable=True),
            )
        return ExperienceEstimate(
            total_years=0.0,
            details="No employment date ranges found",
            constraints=_constraints(0.0, derivable=False),
        )

    merged = merge_spans(spans)
    total_months = sum(span.months for span in merged)
    total_years = round(total_months / 12, 1)
    career_span = round((merged[-1].end - merged[0].start) / 12, 1)
    periods = [f"{_format_month(span.start)} - {_format_month(span.end - 1) if span.months else _format_month(span.end)}" for span in merged]

    details = (
        f"{total_years:g} years of experience from {len(spans)} date range(s) merged into "
        f"{len(merged)} period(s) (career span {career_span:g}y): {'; '.join(periods)}"
    )
    return ExperienceEstimate(
        total_years=total_years,
        details=details,
        constraints=_constraints(total_years, derivable=True),
        periods=periods,
    )
