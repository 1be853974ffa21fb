from .content_validator import ContentWarning, validate_generated_content
from .corruption import is_corrupted_text
from .experience import calculate_experience
from .placeholders import contains_placeholders, sanitize_cover_letter, strip_placeholders
from .resume_scorer import calculate_resume_score

__all__ = [
    "ContentWarning",
    "validate_generated_content",
    "is_corrupted_text",
    "calculate_experience",
    "contains_placeholders",
    "strip_placeholders",
    "sanitize_cover_letter",
    "calculate_resume_score",
]
