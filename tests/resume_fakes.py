import asyncio
import sys
from pathlib import Path
from typing import Sequence

import fitz  # PyMuPDF

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_forge.ai.types import Attachment, CompletionServiceError  # noqa: E402
from resume_forge.services.prompts import (  # noqa: E402
    CLEANER_SYSTEM_PROMPT,
    COVER_LETTER_SYSTEM_PROMPT,
    RESUME_SYSTEM_PROMPT,
    STRUCTURE_SYSTEM_PROMPT,
)

RESUME_PAGES = [
    "\n".join(
        [
            "Jane Doe",
            "jane.doe@example.com | +1 415 555 0100 | linkedin.com/in/janedoe",
            "San Francisco, CA",
            "",
            "Summary",
            "Backend engineer focused on distributed systems who ships reliable",
            "Python services for product teams.",
            "",
            "Experience",
            "Software Engineer, Acme Corp, Jan 2020 - Present",
            "- Built Python microservices on Kubernetes handling 2M requests per day",
            "- Reduced deployment time by 40% by automating CI/CD pipelines",
        ]
    ),
    "\n".join(
        [
            "Education",
            "B.S. Computer Science, State University, 2015 - 2019",
            "",
            "Skills",
            "Python, Kubernetes, Docker, PostgreSQL, AWS",
        ]
    ),
]

JOB_DESCRIPTION = (
    "Senior Backend Engineer\n"
    "Company: Northwind Labs\n"
    "Location: Austin, TX (Hybrid)\n"
    "\n"
    "About the role\n"
    "Northwind Labs is hiring a backend engineer to scale our logistics platform. You will work with "
    "Python, Kubernetes and PostgreSQL every day, partnering with cross-functional teams across product "
    "and operations.\n"
    "\n"
    "Responsibilities:\n"
    "- Design and operate Python microservices on Kubernetes\n"
    "- Improve reliability and performance of our data pipelines\n"
    "- Mentor engineers and run code reviews\n"
    "\n"
    "Requirements:\n"
    "- 3+ years of experience building backend services in Python\n"
    "- Hands-on experience with Kubernetes and Docker\n"
    "- Bachelor's degree in Computer Science or related field\n"
)

GENERATED_RESUME = """Sure! Here is the tailored resume:

# Jane Doe
jane.doe@example.com | +1 415 555 0100 | linkedin.com/in/janedoe

## Summary
Backend engineer building Python services on Kubernetes, ready to help [Company Name] scale.

## Experience
**Software Engineer, Acme Corp** (Jan 2020 - Present)
- Built Python microservices on Kubernetes handling 2M requests per day
- Reduced deployment time by 40% by automating CI/CD pipelines

## Skills
Python, Kubernetes, Docker, PostgreSQL, AWS

## Education
B.S. Computer Science, State University, 2015 - 2019
"""

GENERATED_COVER_LETTER = (
    "Dear [Hiring Manager Name],\n\n"
    "I am excited to apply for the Senior Backend Engineer role at Northwind Labs. At Acme Corp I built "
    "Python microservices on Kubernetes and cut deployment time by 40%.\n\n"
    "Best regards,\nJane Doe"
)

_CLEANER_PREFIX = "Clean this resume text:\n\n"


class FakeCompletionService:
    """Routes calls on the system instruction and records every request."""

    def __init__(
        self,
        *,
        resume: str = GENERATED_RESUME,
        cover_letter: str = GENERATED_COVER_LETTER,
        cleaner: str | None = None,
        structure: str | None = None,
        errors: dict[str, list[Exception]] | None = None,
        delays: dict[str, float] | None = None,
    ):
        self.replies = {"resume": resume, "cover_letter": cover_letter, "cleaner": cleaner, "structure": structure}
        self.errors = {route: list(items) for route, items in (errors or {}).items()}
        self.calls: list[tuple[str, str, Sequence[Attachment]]] = []
        self.delays = dict(delays or {})
        self.completed: list[str] = []

    def _route(self, system_instruction: str) -> str:
        return {
            STRUCTURE_SYSTEM_PROMPT: "structure",
            CLEANER_SYSTEM_PROMPT: "cleaner",
            RESUME_SYSTEM_PROMPT: "resume",
            COVER_LETTER_SYSTEM_PROMPT: "cover_letter",
        }[system_instruction]

    def count(self, route: str) -> int:
        return sum(1 for name, _, _ in self.calls if name == route)

    async def complete(
        self,
        prompt: str,
        *,
        system_instruction: str,
        attachments: Sequence[Attachment] = (),
        temperature: float = 0.2,
        max_output_tokens: int = 2048,
    ) -> str:
        route = self._route(system_instruction)
        self.calls.append((route, prompt, attachments))
        if self.delays.get(route):
            await asyncio.sleep(self.delays[route])
        pending = self.errors.get(route)
        if pending:
            raise pending.pop(0)
        reply = self._reply(route, prompt)
        self.completed.append(route)
        return reply

    def _reply(self, route: str, prompt: str) -> str:
        if route == "cleaner" and self.replies["cleaner"] is None:
            return prompt[len(_CLEANER_PREFIX):] if prompt.startswith(_CLEANER_PREFIX) else prompt
        if route == "structure" and self.replies["structure"] is None:
            raise CompletionServiceError("vision analysis unavailable", category="configuration")
        return self.replies[route]


def build_text_pdf(pages: Sequence[str] = RESUME_PAGES) -> bytes:
    doc = fitz.open()
    for body in pages:
        page = doc.new_page()
        page.insert_text((56, 72), body, fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


def build_image_only_pdf(page_count: int = 1) -> bytes:
    doc = fitz.open()
    for _ in range(page_count):
        page = doc.new_page()
        page.draw_rect(fitz.Rect(72, 72, 520, 300), color=(0, 0, 0), fill=(0.85, 0.85, 0.85))
    data = doc.tobytes()
    doc.close()
    return data
