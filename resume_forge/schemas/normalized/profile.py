from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

CANONICAL_SECTIONS = (
    "SUMMARY",
    "EXPERIENCE",
    "EDUCATION",
    "SKILLS",
    "PROJECTS",
    "CERTIFICATIONS",
    "AWARDS",
    "PUBLICATIONS",
    "LANGUAGES",
    "VOLUNTEER",
    "OTHER",
)
CATCH_ALL_SECTION = "OTHER"


class NormalizedProfile(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    linkedin: str | None = None
    location: str | None = None
    sections: dict[str, str] = Field(default_factory=dict)
    raw_text: str = ""

    @field_validator("sections")
    @classmethod
    def _validate_section_keys(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = sorted(key for key in value if key not in CANONICAL_SECTIONS)
        if unknown:
            raise ValueError(f"unknown section keys: {', '.join(unknown)}")
        return value

    def section(self, *names: str) -> str:
        """First non-empty section body among ``names``."""
        for name in names:
            body = self.sections.get(name, "").strip()
            if body:
                return body
        return ""

    def with_cleaned_sections(self, sections: dict[str, str]) -> "NormalizedProfile":
        return self.model_copy(update={"sections": dict(sections)})
