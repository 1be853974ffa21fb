import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    enabled: bool


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "openai").strip().lower()
    model = os.getenv("AI_MODEL", "gpt-4o-mini").strip()
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    enabled = (os.getenv("AI_ENABLED", "1").strip().lower() in {"1", "true", "yes", "y", "on"}) and bool(
        api_key and not _looks_like_placeholder(api_key)
    )
    return AIConfig(provider=provider, model=model, enabled=enabled)
