import asyncio
import sys
import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from resume_fakes import (  # noqa: E402
    JOB_DESCRIPTION,
    FakeCompletionService,
    build_image_only_pdf,
    build_text_pdf,
)

from resume_forge.ai.retry import RetryPolicy  # noqa: E402
from resume_forge.ai.types import CompletionServiceError  # noqa: E402
from resume_forge.core.generation_cache import GenerationCache, make_cache_key  # noqa: E402
from resume_forge.features.placeholders import contains_placeholders  # noqa: E402
from resume_forge.parsing.models import DocumentTree, StrategyResult  # noqa: E402
from resume_forge.parsing.ocr import OcrStrategy  # noqa: E402
from resume_forge.parsing.text_extractor import TextLayerStrategy  # noqa: E402
from resume_forge.schemas.generation import GeneratedBundle  # noqa: E402
from resume_forge.services.errors import (  # noqa: E402
    CorruptedOutputError,
    GenerationFailedError,
    InputRejectedError,
    PipelineTimeoutError,
    ServiceUnavailableError,
    UnreadableDocumentError,
)
from resume_forge.services.generation_service import RequestDeadline, clean_markdown_content, generate  # noqa: E402

TODAY = date(2024, 6, 1)


class StaleCache:
    make_key = staticmethod(make_cache_key)

    def __init__(self):
        self.puts = []
        self.deletes = []

    def get(self, key):
        return GeneratedBundle(
            resume="# [Your Name]\nSoftware Engineer with Python experience at [Company Name].",
            cover_letter="Dear [Hiring Manager Name],\nI would love to join.",
        )

    def put(self, key, bundle):
        self.puts.append(bundle)
        return True

    def delete(self, key):
        self.deletes.append(key)


class StaticStrategy:
    """Contributes page images and a layout tree but no text."""

    name = "render"

    def __init__(self, *, images, structure=None):
        self.images = images
        self.structure = structure

    async def extract(self, content):
        return StrategyResult(
            name=self.name,
            images=self.images,
            structure=self.structure,
            page_count=len(self.images),
        )


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def _no_delay_policy():
    return RetryPolicy(initial_delay_s=0, max_delay_s=0)


class GenerationScenarioTests(unittest.IsolatedAsyncioTestCase):
    async def _generate(self, pdf=None, jd=JOB_DESCRIPTION, **kwargs):
        kwargs.setdefault("completion_service", FakeCompletionService())
        kwargs.setdefault("cache", None)
        kwargs.setdefault("strategies", [TextLayerStrategy()])
        kwargs.setdefault("today", TODAY)
        return await generate(build_text_pdf() if pdf is None else pdf, jd, **kwargs)

    async def test_two_page_resume_produces_clean_outputs(self):
        service = FakeCompletionService()
        result = await self._generate(completion_service=service)

        self.assertFalse(contains_placeholders(result.resume))
        self.assertFalse(contains_placeholders(result.cover_letter))
        self.assertTrue(result.resume.startswith("# Jane Doe"))
        self.assertIn("ready to help scale.", result.resume)
        self.assertTrue(result.cover_letter.startswith("Dear Hiring Manager,"))
        self.assertIn("Northwind Labs", result.cover_letter)

        self.assertEqual(result.profile.name, "Jane Doe")
        self.assertEqual(result.profile.email, "jane.doe@example.com")
        self.assertAlmostEqual(result.experience.total_years, 4.4)
        self.assertEqual(result.experience.periods, ["Jan 2020 - May 2024"])

        self.assertTrue(0 <= result.source_score.score <= 100)
        self.assertTrue(0 <= result.generated_score.score <= 100)
        self.assertEqual(result.job.title, "Senior Backend Engineer")
        self.assertIn("Python", result.job.skills)
        self.assertIn("Kubernetes", result.job.skills)
        self.assertFalse(result.cached)

        self.assertEqual(result.metadata["parse_source"], "text-layer")
        self.assertEqual(result.metadata["page_count"], 2)
        self.assertTrue(result.metadata["ai_cleaned"])
        self.assertEqual(service.count("resume"), 1)
        self.assertEqual(service.count("cover_letter"), 1)

    async def test_resume_only_skips_cover_letter(self):
        service = FakeCompletionService()
        result = await self._generate(completion_service=service, include_cover_letter=False)
        self.assertIsNone(result.cover_letter)
        self.assertEqual(service.count("cover_letter"), 0)

    async def test_empty_upload_is_rejected_before_parsing(self):
        service = FakeCompletionService()
        with patch("resume_forge.services.document_service.parse_document") as parse:
            with self.assertRaises(InputRejectedError) as ctx:
                await self._generate(pdf=b"", completion_service=service)
        self.assertEqual(str(ctx.exception), "PDF file is empty")
        self.assertEqual(ctx.exception.status_code, 400)
        parse.assert_not_called()
        self.assertEqual(service.calls, [])

    async def test_short_job_description_is_rejected(self):
        with self.assertRaises(InputRejectedError):
            await self._generate(jd="Engineer wanted")

    async def test_scanned_gibberish_is_unreadable(self):
        service = FakeCompletionService()
        gibberish = "\n".join(["a" * 40] * 8)
        with patch("resume_forge.parsing.ocr.ocr_image", return_value=gibberish) as ocr:
            with self.assertRaises(UnreadableDocumentError) as ctx:
                await self._generate(
                    pdf=build_image_only_pdf(),
                    completion_service=service,
                    strategies=[TextLayerStrategy(), OcrStrategy()],
                )
        ocr.assert_called_once()
        self.assertEqual(ctx.exception.status_code, 422)
        self.assertEqual(service.count("resume"), 0)

    async def test_scanned_pdf_without_ocr_text_is_unreadable(self):
        with patch("resume_forge.parsing.ocr.ocr_image", return_value=""):
            with self.assertRaises(UnreadableDocumentError):
                await self._generate(pdf=build_image_only_pdf(), strategies=[TextLayerStrategy(), OcrStrategy()])

    async def test_repeat_request_is_served_from_cache(self):
        with tempfile.TemporaryDirectory() as tmp:
            cache = GenerationCache(str(Path(tmp) / "generation.db"))
            try:
                service = FakeCompletionService()
                first = await self._generate(completion_service=service, cache=cache)
                second = await self._generate(completion_service=service, cache=cache)
            finally:
                cache.close()

        self.assertFalse(first.cached)
        self.assertTrue(second.cached)
        self.assertEqual(second.resume, first.resume)
        self.assertEqual(second.cover_letter, first.cover_letter)
        self.assertEqual(service.count("resume"), 1)
        self.assertEqual(service.count("cover_letter"), 1)

    async def test_cached_placeholders_are_regenerated(self):
        cache = StaleCache()
        service = FakeCompletionService()
        result = await self._generate(completion_service=service, cache=cache)
        self.assertFalse(result.cached)
        self.assertFalse(contains_placeholders(result.resume))
        self.assertEqual(service.count("resume"), 1)
        self.assertEqual(len(cache.puts), 1)
        self.assertEqual(len(cache.deletes), 1)

    async def test_transient_failures_map_to_service_unavailable(self):
        errors = [CompletionServiceError("slow down", category="rate_limited") for _ in range(3)]
        service = FakeCompletionService(errors={"resume": errors})
        with patch("resume_forge.ai.retry.default_retry_policy", _no_delay_policy):
            with self.assertRaises(ServiceUnavailableError) as ctx:
                await self._generate(completion_service=service, include_cover_letter=False)
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(service.count("resume"), 3)

    async def test_permanent_failure_is_not_retried(self):
        service = FakeCompletionService(errors={"resume": [CompletionServiceError("refused", category="other")]})
        with self.assertRaises(GenerationFailedError):
            await self._generate(completion_service=service, include_cover_letter=False)
        self.assertEqual(service.count("resume"), 1)

    async def test_missing_service_is_unavailable(self):
        with patch("resume_forge.services.generation_service.get_completion_service", return_value=None):
            with self.assertRaises(ServiceUnavailableError):
                await generate(build_text_pdf(), JOB_DESCRIPTION, cache=None, strategies=[TextLayerStrategy()])

    async def test_short_generated_resume_fails(self):
        service = FakeCompletionService(resume="# Jane Doe\nPython")
        with self.assertRaises(GenerationFailedError) as ctx:
            await self._generate(completion_service=service, include_cover_letter=False)
        self.assertEqual(ctx.exception.status_code, 502)

    async def test_short_cover_letter_fails(self):
        service = FakeCompletionService(cover_letter="Dear [Hiring Manager Name],\nHi.")
        with self.assertRaises(GenerationFailedError):
            await self._generate(completion_service=service)

    async def test_corrupted_generated_resume_fails(self):
        service = FakeCompletionService(resume="\n".join(["x" * 30] * 10))
        with self.assertRaises(CorruptedOutputError):
            await self._generate(completion_service=service, include_cover_letter=False)

    async def test_fabricated_content_is_reported_not_removed(self):
        resume = clean_markdown_content(FakeCompletionService().replies["resume"]).replace(
            "Python, Kubernetes", "Python, Terraform, Kubernetes"
        )
        service = FakeCompletionService(resume=resume)
        with self.assertLogs("resume_forge.services.generation_service", level="WARNING"):
            result = await self._generate(completion_service=service, include_cover_letter=False)
        self.assertIn("Terraform", result.resume)
        self.assertIn(("skill", "Terraform"), [(item.field, item.value) for item in result.warnings])

    async def test_exhausted_budget_fails_fast(self):
        clock = FakeClock()
        deadline = RequestDeadline(budget_s=10, safety_margin_s=5, clock=clock)
        clock.now = 9.0
        service = FakeCompletionService()
        with self.assertRaises(PipelineTimeoutError) as ctx:
            await self._generate(completion_service=service, deadline=deadline, include_cover_letter=False)
        self.assertEqual(ctx.exception.status_code, 504)
        self.assertEqual(service.count("resume"), 0)

    async def test_cleaner_skipped_when_budget_is_reserved_for_generation(self):
        deadline = RequestDeadline(budget_s=12, safety_margin_s=5, clock=FakeClock())
        service = FakeCompletionService(delays={"cleaner": 5})
        result = await self._generate(completion_service=service, deadline=deadline, include_cover_letter=False)
        self.assertEqual(service.count("cleaner"), 0)
        self.assertEqual(service.count("resume"), 1)
        self.assertFalse(result.metadata["ai_cleaned"])
        self.assertTrue(result.resume.startswith("# Jane Doe"))

    async def test_slow_cleaner_is_abandoned_before_generation(self):
        deadline = RequestDeadline(budget_s=8.5, safety_margin_s=0.1, clock=FakeClock())
        service = FakeCompletionService(delays={"cleaner": 5})
        with self.assertLogs("resume_forge.services.generation_service", level="WARNING") as logs:
            result = await self._generate(completion_service=service, deadline=deadline, include_cover_letter=False)
        self.assertTrue(any("ai_cleaner_timeout" in line for line in logs.output))
        self.assertEqual(service.count("cleaner"), 1)
        self.assertNotIn("cleaner", service.completed)
        self.assertFalse(result.metadata["ai_cleaned"])
        self.assertTrue(result.resume.startswith("# Jane Doe"))

    async def test_failed_resume_cancels_cover_letter(self):
        service = FakeCompletionService(
            errors={"resume": [CompletionServiceError("refused", category="other")]},
            delays={"cover_letter": 0.5},
        )
        with self.assertRaises(GenerationFailedError):
            await self._generate(completion_service=service)
        await asyncio.sleep(0.6)
        self.assertEqual(service.count("cover_letter"), 1)
        self.assertNotIn("cover_letter", service.completed)

    async def test_resume_prompt_carries_page_images_layout_and_role(self):
        layout = DocumentTree(
            kind="document",
            children=[
                DocumentTree(
                    kind="section",
                    children=[
                        DocumentTree(kind="header", level=2, content="Experience"),
                        DocumentTree(kind="paragraph", content="Software Engineer, Acme Corp"),
                    ],
                )
            ],
        )
        pages = StaticStrategy(images=[b"page-1", b"page-2", b"page-3", b"page-4"], structure=layout)
        service = FakeCompletionService()
        await self._generate(
            completion_service=service,
            strategies=[TextLayerStrategy(), pages],
            include_cover_letter=False,
        )

        [(_, prompt, attachments)] = [call for call in service.calls if call[0] == "resume"]
        self.assertEqual([item.data for item in attachments], [b"page-1", b"page-2", b"page-3"])
        self.assertTrue(all(item.mime_type == "image/png" for item in attachments))
        self.assertIn("The 3 attached page image(s)", prompt)
        self.assertIn("## Layout of the original document", prompt)
        self.assertIn("HEADER(h2): Experience", prompt)
        self.assertIn("## Target role", prompt)
        self.assertIn("**Position:** Senior Backend Engineer", prompt)

    async def test_text_only_document_sends_no_attachments(self):
        service = FakeCompletionService()
        await self._generate(completion_service=service, include_cover_letter=False)
        [(_, prompt, attachments)] = [call for call in service.calls if call[0] == "resume"]
        self.assertEqual(list(attachments), [])
        self.assertNotIn("## Layout of the original document", prompt)
        self.assertNotIn("attached page image", prompt)


class RequestDeadlineTests(unittest.TestCase):
    def test_remaining_tracks_clock(self):
        clock = FakeClock(100.0)
        deadline = RequestDeadline(budget_s=25, safety_margin_s=5, clock=clock)
        clock.now = 110.0
        self.assertEqual(deadline.elapsed(), 10.0)
        self.assertEqual(deadline.remaining(), 15.0)
        deadline.ensure("resume_generation")

        clock.now = 121.0
        with self.assertRaises(PipelineTimeoutError):
            deadline.ensure("resume_generation")


class CleanMarkdownContentTests(unittest.TestCase):
    def test_strips_fences_and_preamble(self):
        raw = "Here you go!\n```markdown\n# Jane Doe\n## Skills\nPython\n```"
        self.assertEqual(clean_markdown_content(raw), "# Jane Doe\n## Skills\nPython")

    def test_text_without_heading_is_kept(self):
        self.assertEqual(clean_markdown_content("  plain text  "), "plain text")


if __name__ == "__main__":
    unittest.main()
