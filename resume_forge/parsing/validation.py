from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from resume_forge.core.config import settings
from resume_forge.services.errors import InputRejectedError

PDF_MAGIC = b"%PDF"
MIN_PDF_VERSION = 1.0
MAX_PDF_VERSION = 2.0

JOB_DESCRIPTION_MIN_CHARS = 50
JOB_DESCRIPTION_MAX_CHARS = 50_000
JOB_DESCRIPTION_MIN_MEANINGFUL_CHARS = 30

_VERSION_RE = re.compile(rb"%PDF-(\d\.\d)")
_SUSPICIOUS_PATTERNS = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_DATA_URL_PREFIX_RE = re.compile(r"^data:[^;,]+;base64,", re.IGNORECASE)
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
_FILENAME_RE = re.compile(r"^[^\\/:*?\"<>|\x00-\x1f]{1,255}$")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)


def validate_pdf_buffer(content: bytes, *, max_bytes: int | None = None) -> ValidationResult:
    """Check that ``content`` plausibly is a PDF the pipeline can handle.

    Malformed input is an expected outcome and is reported in the result;
    this function does not raise for it.
    """
    limit = max_bytes if max_bytes is not None else settings.max_pdf_bytes
    if not content:
        return ValidationResult.fail("PDF file is empty")

    if len(content) > limit:
        size_mb = len(content) / (1024 * 1024)
        limit_mb = limit // (1024 * 1024)
        return ValidationResult.fail(f"File too large: {size_mb:.2f}MB. Maximum size is {limit_mb}MB.")

    if len(content) < 4:
        return ValidationResult.fail("File is too small to be a valid PDF")

    if not content.startswith(PDF_MAGIC):
        return ValidationResult.fail("Invalid file format. Please upload a PDF file.")

    match = _VERSION_RE.search(content[:1024])
    if match:
        version_token = match.group(1).decode("ascii")
        version = float(version_token)
        if version < MIN_PDF_VERSION or version > MAX_PDF_VERSION:
            return ValidationResult.fail(f"Unsupported PDF version: {version_token}")

    return ValidationResult.ok()


def validate_job_description(text: str | None) -> ValidationResult:
    if text is None or not text.strip():
        return ValidationResult.fail("Job description is required")

    trimmed = text.strip()
    if len(trimmed) < JOB_DESCRIPTION_MIN_CHARS:
        return ValidationResult.fail(
            f"Job description is too short. Please provide at least {JOB_DESCRIPTION_MIN_CHARS} characters."
        )
    if len(trimmed) > JOB_DESCRIPTION_MAX_CHARS:
        return ValidationResult.fail(
            f"Job description is too long. Maximum {JOB_DESCRIPTION_MAX_CHARS} characters allowed."
        )

    for pattern in _SUSPICIOUS_PATTERNS:
        if pattern.search(trimmed):
            return ValidationResult.fail("Job description contains invalid content")

    meaningful = re.sub(r"\s", "", trimmed)
    if len(meaningful) < JOB_DESCRIPTION_MIN_MEANINGFUL_CHARS:
        return ValidationResult.fail("Job description must contain meaningful content")

    return ValidationResult.ok()


def sanitize_job_description(text: str) -> str:
    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = cleaned.replace("\x00", "")
    cleaned = _CONTROL_CHARS_RE.sub("", cleaned)
    cleaned = re.sub(r"[ \t]+", " ", cleaned)
    cleaned = re.sub(r" *\n *", "\n", cleaned)
    cleaned = re.sub(r"\n{4,}", "\n\n\n", cleaned)
    return cleaned.strip()


def validate_file_name(name: str | None) -> ValidationResult:
    if not name or not name.strip():
        return ValidationResult.fail("File name is required")
    if ".." in name or not _FILENAME_RE.match(name):
        return ValidationResult.fail("Invalid file name")
    if not name.lower().endswith(".pdf"):
        return ValidationResult.fail("Only PDF files are supported")
    return ValidationResult.ok()


def decode_base64_pdf(payload: str) -> bytes:
    """Decode a base64 (optionally data-URL prefixed) PDF payload.

    Raises ``InputRejectedError`` when the payload is not valid base64.
    """
    if not payload or not payload.strip():
        raise InputRejectedError("Resume file is required")

    body = _DATA_URL_PREFIX_RE.sub("", payload.strip())
    body = re.sub(r"\s", "", body)
    if not body or len(body) % 4 != 0 or not _BASE64_RE.match(body):
        raise InputRejectedError("Invalid file encoding. Please upload the PDF again.")

    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InputRejectedError("Invalid file encoding. Please upload the PDF again.") from exc
