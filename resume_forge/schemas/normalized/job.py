from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

WorkMode = Literal["remote", "hybrid", "onsite", "unknown"]


class JobPosting(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str | None = None
    company: str | None = None
    location: str | None = None
    work_mode: WorkMode = "unknown"
    salary_range: str | None = None
    skills: list[str] = Field(default_factory=list)
    requirements: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    experience_required: str | None = None
    education_required: str | None = None
    benefits: list[str] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "JobPosting":
        return cls()

