from .experience import ExperienceEstimate
from .job import JobPosting, WorkMode
from .profile import CANONICAL_SECTIONS, CATCH_ALL_SECTION, NormalizedProfile
from .score import ResumeScore, ScoreCategory

__all__ = [
    "CANONICAL_SECTIONS",
    "CATCH_ALL_SECTION",
    "NormalizedProfile",
    "JobPosting",
    "WorkMode",
    "ExperienceEstimate",
    "ResumeScore",
    "ScoreCategory",
]
