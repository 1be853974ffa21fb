import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_forge.features.corruption import is_corrupted_text  # noqa: E402
from resume_forge.features.placeholders import (  # noqa: E402
    contains_placeholders,
    find_placeholders,
    sanitize_cover_letter,
    strip_placeholders,
)
from resume_forge.parsing.sanitize import (  # noqa: E402
    fix_wide_spacing,
    is_garbage_line,
    sanitize_text,
    split_merged_words,
)


class CorruptionDetectorTests(unittest.TestCase):
    def test_identical_character_lines_are_rejected(self):
        text = "\n".join(["aaaaaaaaaaaaaaaaaaaa"] * 10)
        self.assertTrue(is_corrupted_text(text))

    def test_normal_resume_text_is_accepted(self):
        text = "\n".join(
            [
                "Jane Doe - Software Engineer at Acme Corp",
                "Built Python services on Kubernetes for 2M daily users",
                "- 2020",
                "- 2021",
                "Reduced deployment time by 40% with automated pipelines",
                "Education: B.S. Computer Science, State University",
            ]
        )
        self.assertFalse(is_corrupted_text(text))

    def test_short_text_is_never_judged(self):
        self.assertFalse(is_corrupted_text("aaaaaaaaaa\naaaaaaaaaa"))

    def test_ratio_must_exceed_threshold(self):
        lines = ["bbbbbbbbbbbbbbbbbbbbbbbb"] * 8 + ["Normal line with varied characters 123"] * 2
        text = "\n".join(lines)
        self.assertFalse(is_corrupted_text(text))
        self.assertTrue(is_corrupted_text(text, line_ratio=0.7))


class PlaceholderTests(unittest.TestCase):
    def test_bracket_tokens_are_stripped_and_rest_preserved(self):
        text = "Dear [Hiring Manager Name],\nI admire [Company]'s mission.\nSee [my site](https://example.com)."
        stripped = strip_placeholders(text)
        self.assertEqual(stripped, "Dear ,\nI admire 's mission.\nSee [my site](https://example.com).")
        self.assertEqual(find_placeholders(stripped), [])

    def test_nested_brackets_are_fully_removed(self):
        self.assertEqual(strip_placeholders("a [[b]] c"), "a  c")

    def test_filler_phrases_detected(self):
        self.assertTrue(contains_placeholders("Lorem ipsum dolor sit amet"))
        self.assertTrue(contains_placeholders("Insert your achievement here."))
        self.assertFalse(contains_placeholders("Increased revenue by 20% at Acme Corp."))

    def test_markdown_links_are_not_placeholders(self):
        self.assertFalse(contains_placeholders("Portfolio: [janedoe.dev](https://janedoe.dev)"))

    def test_cover_letter_sanitization(self):
        letter = (
            "Dear [Hiring Manager],\n\n"
            "I am excited to apply.\n\n"
            "I am excited to apply.\n\n"
            "Best regards,\nJane Doe"
        )
        cleaned = sanitize_cover_letter(letter)
        self.assertNotIn("[", cleaned)
        self.assertEqual(cleaned.count("I am excited to apply."), 1)
        self.assertTrue(cleaned.startswith("Dear Hiring Manager,\n"))
        self.assertTrue(cleaned.endswith("Jane Doe"))

    def test_greeting_placeholder_becomes_hiring_manager(self):
        cases = {
            "Dear [Hiring Manager Name],\nThanks.": "Dear Hiring Manager,\nThanks.",
            "Hello [Recruiter's Name],\nThanks.": "Hello Hiring Manager,\nThanks.",
            "Dear Hiring Manager's Name,\nThanks.": "Dear Hiring Manager,\nThanks.",
            "Dear Ms. Lee,\nI would join [Company Name] gladly.": "Dear Ms. Lee,\nI would join gladly.",
        }
        for letter, expected in cases.items():
            with self.subTest(letter=letter):
                self.assertEqual(sanitize_cover_letter(letter), expected)


class SanitizeTests(unittest.TestCase):
    def test_wide_spacing_is_rejoined(self):
        self.assertEqual(fix_wide_spacing("S K I L L S"), "SKILLS")
        self.assertEqual(fix_wide_spacing("T e c h n i c a l"), "Technical")

    def test_merged_words_split_but_products_kept(self):
        self.assertEqual(split_merged_words("SeniorManager"), "Senior Manager")
        self.assertEqual(split_merged_words("JavaScript and PostgreSQL"), "JavaScript and PostgreSQL")

    def test_garbage_lines_dropped(self):
        self.assertTrue(is_garbage_line("~~~///|||***"))
        self.assertFalse(is_garbage_line("Python, SQL"))
        self.assertEqual(sanitize_text("Experience\n~~~///|||***\nBuilt  APIs"), "Experience\nBuilt APIs")


if __name__ == "__main__":
    unittest.main()
