from functools import lru_cache

from resume_forge.ai.config import load_ai_config
from resume_forge.ai.types import CompletionService

from resume_forge.ai.providers.openai_provider import OpenAIProvider


def build_completion_service() -> CompletionService | None:
    cfg = load_ai_config()
    if not cfg.enabled:
        return None

    if cfg.provider == "openai":
        return OpenAIProvider(model=cfg.model)

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")


@lru_cache(maxsize=1)
def get_completion_service() -> CompletionService | None:
    return build_completion_service()
