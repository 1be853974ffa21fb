from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ExperienceEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_years: float = Field(ge=0)
    details: str
    constraints: list[str] = Field(default_factory=list)
    periods: list[str] = Field(default_factory=list)
