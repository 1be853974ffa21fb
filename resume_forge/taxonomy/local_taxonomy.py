from __future__ import annotations

import json
import re
from pathlib import Path

from .provider import TaxonomyProvider

_LEFT_BOUNDARY = r"(?<![A-Za-z0-9&])"
_RIGHT_BOUNDARY = r"(?![A-Za-z0-9+#&])"


class LocalTaxonomy(TaxonomyProvider):
    def __init__(self, skills_path: str | Path | None = None) -> None:
        path = Path(skills_path) if skills_path else Path(__file__).with_name("skills.json")
        entries = self._load_skills(path)
        self._synonyms: dict[str, str] = {}
        self._patterns: list[tuple[str, re.Pattern[str]]] = []
        for name, aliases, case_sensitive in entries:
            terms = sorted({name, *aliases}, key=len, reverse=True)
            for term in terms:
                self._synonyms.setdefault(term.lower(), name)
            alternation = "|".join(re.escape(term) for term in terms)
            flags = 0 if case_sensitive else re.IGNORECASE
            self._patterns.append((name, re.compile(f"{_LEFT_BOUNDARY}(?:{alternation}){_RIGHT_BOUNDARY}", flags)))

    @staticmethod
    def _load_skills(path: Path) -> list[tuple[str, list[str], bool]]:
        with path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        entries: list[tuple[str, list[str], bool]] = []
        for item in raw.get("skills", []):
            name = str(item["name"]).strip()
            aliases = [str(alias).strip() for alias in item.get("aliases", []) if str(alias).strip()]
            entries.append((name, aliases, bool(item.get("case_sensitive", False))))
        return entries

    @property
    def skill_names(self) -> list[str]:
        return [name for name, _ in self._patterns]

    def normalize_skill(self, raw: str) -> tuple[str, str | None]:
        normalized = raw.strip().lower()
        canonical_skill = self._synonyms.get(normalized)
        return normalized, canonical_skill

    def count_mentions(self, text: str) -> dict[str, tuple[int, int]]:
        mentions: dict[str, tuple[int, int]] = {}
        if not text:
            return mentions
        for name, pattern in self._patterns:
            matches = list(pattern.finditer(text))
            if matches:
                mentions[name] = (len(matches), matches[0].start())
        return mentions

    def find_skills(self, text: str) -> list[str]:
        mentions = self.count_mentions(text)
        return sorted(mentions, key=lambda name: mentions[name][1])
