from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class ScoreCategory(BaseModel):
    score: int = Field(ge=0)
    max: int = Field(ge=0)
    notes: list[str] = Field(default_factory=list)


class ResumeScore(BaseModel):
    score: int = Field(ge=0, le=100)
    grade: str
    breakdown: dict[str, ScoreCategory]
    tips: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _breakdown_sums_to_score(self) -> "ResumeScore":
        total = sum(item.score for item in self.breakdown.values())
        if total != self.score:
            raise ValueError(f"breakdown sums to {total}, expected {self.score}")
        return self
