import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_forge.features.resume_scorer import calculate_resume_score  # noqa: E402

STRONG_RESUME = "\n".join(
    [
        "Jane Doe",
        "jane.doe@example.com | +1 415 555 0100 | linkedin.com/in/janedoe",
        "Summary",
        "Backend engineer who architected and delivered payment platforms used by millions of customers.",
        "Experience",
        "- Architected a billing service that increased revenue by 25%",
        "- Reduced infrastructure cost by 30% and saved $120k per year",
        "- Led a team of 6 engineers and mentored 4 interns",
        "- Automated releases, cutting deploy time by 50%",
        "- Optimized queries to improve latency by 40%",
        "- Launched 3 new products, built dashboards, designed APIs, implemented caching, streamlined on-call",
        "Projects",
        "- Developed an open-source scheduler with 1,000+ stars",
        "Education",
        "B.S. Computer Science, State University",
        "Skills",
        "Python, Go, Kubernetes, PostgreSQL",
    ]
    + ["Delivered reliable services across regions with a focus on observability and clean interfaces."] * 12
)


class ResumeScorerTests(unittest.TestCase):
    def test_scoring_is_deterministic(self):
        first = calculate_resume_score(STRONG_RESUME)
        second = calculate_resume_score(STRONG_RESUME)
        self.assertEqual(first.score, second.score)
        self.assertEqual(first.breakdown, second.breakdown)

    def test_breakdown_sums_to_score(self):
        result = calculate_resume_score(STRONG_RESUME)
        self.assertEqual(sum(item.score for item in result.breakdown.values()), result.score)
        self.assertTrue(0 <= result.score <= 100)
        for category in result.breakdown.values():
            self.assertLessEqual(category.score, category.max)

    def test_strong_resume_scores_each_category(self):
        result = calculate_resume_score(STRONG_RESUME)
        self.assertEqual(result.breakdown["contact_info"].score, 15)
        self.assertEqual(result.breakdown["sections"].score, 25)
        self.assertEqual(result.breakdown["content_length"].score, 10)
        self.assertEqual(result.breakdown["quantifiable_metrics"].score, 25)
        self.assertEqual(result.breakdown["action_verbs"].score, 25)
        self.assertEqual(result.score, 100)
        self.assertEqual(result.grade, "A+")
        self.assertEqual(result.tips, [])

    def test_sparse_text_gets_low_grade_and_tips(self):
        result = calculate_resume_score("hello world")
        self.assertEqual(result.breakdown["contact_info"].score, 0)
        self.assertEqual(result.breakdown["content_length"].score, 2)
        self.assertEqual(result.score, 2)
        self.assertEqual(result.grade, "F")
        self.assertEqual(len(result.tips), 3)
        self.assertTrue(result.tips[0].startswith("Fix contact info"))

    def test_empty_text_is_scored_not_rejected(self):
        result = calculate_resume_score("")
        self.assertEqual(result.grade, "F")


if __name__ == "__main__":
    unittest.main()
