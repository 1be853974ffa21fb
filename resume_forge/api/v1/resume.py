import logging
from typing import NoReturn

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from resume_forge.core.config import settings
from resume_forge.features.resume_scorer import calculate_resume_score
from resume_forge.parsing.validation import decode_base64_pdf, validate_file_name
from resume_forge.schemas.generation import (
    AnalyzeResumeRequest,
    ExtractTextResponse,
    GenerateRequest,
    GenerationResponse,
    NormalizeResumeResponse,
)
from resume_forge.schemas.normalized import ResumeScore
from resume_forge.services.document_service import extract_document_text, normalize_resume_document
from resume_forge.services.errors import PipelineError
from resume_forge.services.generation_service import generate

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_CHUNK_BYTES = 1024 * 64


def _raise_pipeline_http_error(exc: PipelineError) -> NoReturn:
    logger.info("pipeline_error code=%s status=%s: %s", exc.code, exc.status_code, exc)
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


async def _read_upload(file: UploadFile) -> bytes:
    name_check = validate_file_name(file.filename)
    if not name_check.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=name_check.error)

    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_pdf_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Maximum allowed size is {settings.max_pdf_bytes // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/generate", response_model=GenerationResponse)
async def generate_resume(payload: GenerateRequest):
    if payload.file_name is not None:
        name_check = validate_file_name(payload.file_name)
        if not name_check.valid:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=name_check.error)
    try:
        pdf_bytes = decode_base64_pdf(payload.resume)
        result = await generate(
            pdf_bytes,
            payload.job_description,
            include_cover_letter=payload.include_cover_letter,
        )
    except PipelineError as exc:
        _raise_pipeline_http_error(exc)

    body = result.model_dump()
    body["profile"] = result.profile.model_dump(exclude={"raw_text"})
    return GenerationResponse(**body)


@router.post("/extract-text", response_model=ExtractTextResponse)
async def extract_text(file: UploadFile = File(...)):
    content = await _read_upload(file)
    try:
        return await extract_document_text(content)
    except PipelineError as exc:
        _raise_pipeline_http_error(exc)


@router.post("/normalize-resume", response_model=NormalizeResumeResponse)
async def normalize_resume(file: UploadFile = File(...)):
    content = await _read_upload(file)
    try:
        return await normalize_resume_document(content)
    except PipelineError as exc:
        _raise_pipeline_http_error(exc)


@router.post("/analyze-resume", response_model=ResumeScore)
async def analyze_resume(payload: AnalyzeResumeRequest):
    if not payload.text.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Resume text is empty")
    return calculate_resume_score(payload.text)
