from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_credentials: bool
    max_pdf_bytes: int
    min_document_chars: int
    parse_strategy_timeout_s: float
    vision_parsing_enabled: bool
    ocr_enabled: bool
    ocr_language: str
    ocr_render_scale: float
    ocr_max_pages: int
    ai_cleaner_enabled: bool
    request_budget_s: float
    request_safety_margin_s: float
    retry_max_attempts: int
    retry_initial_delay_s: float
    retry_max_delay_s: float
    retry_backoff_multiplier: float
    cache_enabled: bool
    cache_db_path: str
    cache_ttl_seconds: int
    cache_max_entries: int
    cache_purge_interval_s: int


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    max_pdf_bytes=_get_env_int("MAX_PDF_BYTES", 10 * 1024 * 1024),
    min_document_chars=_get_env_int("MIN_DOCUMENT_CHARS", 50),
    parse_strategy_timeout_s=_get_env_float("PARSE_STRATEGY_TIMEOUT_S", 12.0),
    vision_parsing_enabled=_get_env_bool("VISION_PARSING_ENABLED", True),
    ocr_enabled=_get_env_bool("OCR_ENABLED", True),
    ocr_language=_get_env("OCR_LANGUAGE", "eng") or "eng",
    ocr_render_scale=_get_env_float("OCR_RENDER_SCALE", 1.5),
    ocr_max_pages=_get_env_int("OCR_MAX_PAGES", 5),
    ai_cleaner_enabled=_get_env_bool("AI_CLEANER_ENABLED", True),
    request_budget_s=_get_env_float("REQUEST_BUDGET_S", 25.0),
    request_safety_margin_s=_get_env_float("REQUEST_SAFETY_MARGIN_S", 5.0),
    retry_max_attempts=_get_env_int("RETRY_MAX_ATTEMPTS", 3),
    retry_initial_delay_s=_get_env_float("RETRY_INITIAL_DELAY_S", 1.0),
    retry_max_delay_s=_get_env_float("RETRY_MAX_DELAY_S", 10.0),
    retry_backoff_multiplier=_get_env_float("RETRY_BACKOFF_MULTIPLIER", 2.0),
    cache_enabled=_get_env_bool("CACHE_ENABLED", True),
    cache_db_path=_get_env("CACHE_DB_PATH", "data/generation_cache.db") or "data/generation_cache.db",
    cache_ttl_seconds=_get_env_int("CACHE_TTL_SECONDS", 24 * 60 * 60),
    cache_max_entries=_get_env_int("CACHE_MAX_ENTRIES", 10000),
    cache_purge_interval_s=_get_env_int("CACHE_PURGE_INTERVAL_S", 3600),
)

if settings.max_pdf_bytes <= 0:
    raise RuntimeError("MAX_PDF_BYTES must be a positive number of bytes.")

if settings.retry_max_attempts < 1:
    raise RuntimeError("RETRY_MAX_ATTEMPTS must be at least 1.")

if settings.request_safety_margin_s >= settings.request_budget_s:
    raise RuntimeError("REQUEST_SAFETY_MARGIN_S must be smaller than REQUEST_BUDGET_S.")
