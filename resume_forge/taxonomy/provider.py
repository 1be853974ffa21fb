from __future__ import annotations

from typing import Protocol


class TaxonomyProvider(Protocol):
    def normalize_skill(self, raw: str) -> tuple[str, str | None]:
        """Return normalized text and optional canonical skill name."""

    def find_skills(self, text: str) -> list[str]:
        """Canonical skills mentioned in ``text``, in order of first mention."""

    def count_mentions(self, text: str) -> dict[str, tuple[int, int]]:
        """Map canonical skill -> (mention count, first character offset)."""
