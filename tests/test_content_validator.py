import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_forge.features.content_validator import validate_generated_content  # noqa: E402
from resume_forge.schemas.normalized import ExperienceEstimate  # noqa: E402

SOURCE = (
    "Jane Doe\n"
    "jane.doe@example.com | +1 415 555 0100 | linkedin.com/in/janedoe\n"
    "Experience\n"
    "Software Engineer, Acme Corp, Jan 2020 - Present\n"
    "- Built Python services on Kubernetes\n"
    "Education\n"
    "B.S. Computer Science, 2015 - 2019\n"
)


class ContentValidatorTests(unittest.TestCase):
    def test_faithful_output_has_no_warnings(self):
        generated = (
            "# Jane Doe\n"
            "jane.doe@example.com | (415) 555-0100 | https://www.linkedin.com/in/janedoe\n"
            "## Experience\n"
            "Software Engineer at Acme Corp since 2020. Built Python services on Kubernetes."
        )
        self.assertEqual(validate_generated_content(generated, SOURCE), [])

    def test_fabricated_claims_are_flagged(self):
        generated = (
            "Led Terraform rollouts at Globex Corporation in 2012. "
            "Contact: other@example.com. 10+ years of experience."
        )
        experience = ExperienceEstimate(total_years=4.4, details="from ranges", constraints=[])
        warnings = validate_generated_content(generated, SOURCE, experience=experience)
        fields = {warning.field for warning in warnings}
        self.assertEqual(fields, {"skill", "email", "date", "company", "experience"})
        skill = next(warning for warning in warnings if warning.field == "skill")
        self.assertEqual(skill.value, "Terraform")

    def test_unknown_phone_and_link_are_flagged(self):
        generated = "Call +1 212 555 0199 or visit https://janedoe.dev"
        fields = [warning.field for warning in validate_generated_content(generated, SOURCE)]
        self.assertEqual(fields, ["phone", "url"])

    def test_empty_output_is_clean(self):
        self.assertEqual(validate_generated_content("", SOURCE), [])


if __name__ == "__main__":
    unittest.main()
