from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

NodeKind = Literal["document", "section", "header", "paragraph", "list", "table"]


class RawDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: bytes
    media_type: str = "application/pdf"


class DocumentTree(BaseModel):
    kind: NodeKind
    level: int | None = Field(default=None, ge=1, le=6)
    content: str | None = None
    children: list[DocumentTree] = Field(default_factory=list)

    @model_validator(mode="after")
    def _level_only_on_headers(self) -> "DocumentTree":
        if self.level is not None and self.kind != "header":
            raise ValueError("only header nodes may carry a level")
        return self


class StrategyResult(BaseModel):
    name: str
    text: str = ""
    ocr_text: str | None = None
    images: list[bytes] = Field(default_factory=list)
    structure: DocumentTree | None = None
    page_count: int = 0
    error: str | None = None

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())


class ParsedArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    ocr_text: str | None = None
    images: list[bytes] = Field(default_factory=list)
    structure: DocumentTree | None = None
    source: str
    page_count: int = 0
    warnings: list[str] = Field(default_factory=list)
