from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from resume_forge.schemas.normalized import ExperienceEstimate, JobPosting, NormalizedProfile, ResumeScore


class GeneratedBundle(BaseModel):
    resume: str
    cover_letter: str | None = None


class ContentWarningOut(BaseModel):
    field: str
    value: str
    message: str


class GenerationResult(BaseModel):
    resume: str
    cover_letter: str | None = None
    profile: NormalizedProfile
    experience: ExperienceEstimate
    source_score: ResumeScore
    generated_score: ResumeScore
    job: JobPosting
    keywords: list[str] = Field(default_factory=list)
    warnings: list[ContentWarningOut] = Field(default_factory=list)
    cached: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class GenerateRequest(BaseModel):
    resume: str = Field(min_length=1, description="Base64-encoded PDF, optionally as a data URL")
    job_description: str = Field(min_length=1, max_length=60000)
    include_cover_letter: bool = True
    file_name: str | None = Field(default=None, max_length=255)


class GenerationResponse(BaseModel):
    resume: str
    cover_letter: str | None = None
    profile: dict[str, Any]
    experience: ExperienceEstimate
    source_score: ResumeScore
    generated_score: ResumeScore
    job: JobPosting
    keywords: list[str] = Field(default_factory=list)
    warnings: list[ContentWarningOut] = Field(default_factory=list)
    cached: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class ExtractTextResponse(BaseModel):
    text: str
    source: str
    page_count: int
    char_count: int
    corrupted: bool
    has_ocr: bool
    structure: dict[str, Any] | None = None
    warnings: list[str] = Field(default_factory=list)


class NormalizeResumeResponse(BaseModel):
    profile: NormalizedProfile
    markdown: str
    experience: ExperienceEstimate
    source: str


class AnalyzeResumeRequest(BaseModel):
    text: str = Field(min_length=1, max_length=60000)
