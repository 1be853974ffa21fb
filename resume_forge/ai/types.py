from dataclasses import dataclass
from typing import Literal, Protocol, Sequence


ErrorCategory = Literal[
    "rate_limited",
    "quota_exceeded",
    "timeout",
    "network",
    "configuration",
    "other",
]

TRANSIENT_CATEGORIES: frozenset[str] = frozenset({"rate_limited", "quota_exceeded", "timeout", "network"})


@dataclass(frozen=True)
class Attachment:
    mime_type: str
    data: bytes
    filename: str | None = None


class CompletionServiceError(RuntimeError):
    def __init__(self, message: str, *, category: ErrorCategory = "other"):
        super().__init__(message)
        self.category = category

    @property
    def transient(self) -> bool:
        return self.category in TRANSIENT_CATEGORIES


class CompletionService(Protocol):
    async def complete(
        self,
        prompt: str,
        *,
        system_instruction: str,
        attachments: Sequence[Attachment] = (),
        temperature: float = 0.2,
        max_output_tokens: int = 2048,
    ) -> str: ...
