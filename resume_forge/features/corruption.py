from __future__ import annotations

from collections import Counter

from resume_forge.core.tuning import get_tuning_value


def _threshold(name: str, fallback: float) -> float:
    return float(get_tuning_value(f"corruption.{name}", fallback))


def line_is_dominated(line: str, *, char_dominance: float, min_line_alnum: int) -> bool:
    """True when a single character makes up almost all of the line's alphanumerics."""
    alnum = [char.lower() for char in line if char.isalnum()]
    if len(alnum) <= min_line_alnum:
        return False
    _, top_count = Counter(alnum).most_common(1)[0]
    return top_count / len(alnum) > char_dominance


def is_corrupted_text(
    text: str,
    *,
    min_length: int | None = None,
    line_ratio: float | None = None,
    char_dominance: float | None = None,
    min_line_alnum: int | None = None,
) -> bool:
    """Detect gibberish such as ``aaaaaaa`` OCR output.

    Text shorter than ``min_length`` is never judged. The document is flagged
    only when more than ``line_ratio`` of its non-blank lines are dominated by
    one character, so short bullet or date lines do not trip the check.
    """
    min_length = int(min_length if min_length is not None else _threshold("min_length", 100))
    line_ratio = line_ratio if line_ratio is not None else _threshold("line_ratio", 0.9)
    char_dominance = char_dominance if char_dominance is not None else _threshold("char_dominance", 0.9)
    min_line_alnum = int(min_line_alnum if min_line_alnum is not None else _threshold("min_line_alnum", 5))

    if not text or len(text.strip()) < min_length:
        return False

    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return False

    bad = sum(
        1
        for line in lines
        if line_is_dominated(line, char_dominance=char_dominance, min_line_alnum=min_line_alnum)
    )
    return bad / len(lines) > line_ratio
