from __future__ import annotations

import base64
import logging
import os
from typing import Any, Optional, Sequence

import openai
from openai import AsyncOpenAI

from resume_forge.ai.types import Attachment, CompletionServiceError

logger = logging.getLogger(__name__)


def _attachment_part(attachment: Attachment) -> dict[str, Any]:
    encoded = base64.b64encode(attachment.data).decode("utf-8")
    data_url = f"data:{attachment.mime_type};base64,{encoded}"
    if attachment.mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": data_url}}
    return {
        "type": "file",
        "file": {"filename": attachment.filename or "document.pdf", "file_data": data_url},
    }


def _map_error(exc: Exception) -> CompletionServiceError:
    if isinstance(exc, openai.APITimeoutError):
        return CompletionServiceError(f"Completion request timed out: {exc}", category="timeout")
    if isinstance(exc, openai.APIConnectionError):
        return CompletionServiceError(f"Completion service unreachable: {exc}", category="network")
    if isinstance(exc, openai.RateLimitError):
        if getattr(exc, "code", None) == "insufficient_quota":
            return CompletionServiceError("Completion service quota exceeded", category="quota_exceeded")
        return CompletionServiceError("Completion service rate limit reached", category="rate_limited")
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return CompletionServiceError("Completion service credentials rejected", category="configuration")
    if isinstance(exc, openai.InternalServerError):
        return CompletionServiceError(f"Completion service error: {exc}", category="network")
    return CompletionServiceError(f"Completion request failed: {exc}", category="other")


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 0,
    ):
        self._model = model
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        # SDK retries default to off; resume_forge.ai.retry owns the retry policy.
        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        prompt: str,
        *,
        system_instruction: str,
        attachments: Sequence[Attachment] = (),
        temperature: float = 0.2,
        max_output_tokens: int = 2048,
    ) -> str:
        user_content: str | list[dict[str, Any]]
        if attachments:
            user_content = [{"type": "text", "text": prompt}]
            user_content.extend(_attachment_part(item) for item in attachments)
        else:
            user_content = prompt

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": user_content},
                ],
                temperature=temperature,
                max_tokens=max_output_tokens,
            )
        except openai.OpenAIError as exc:
            mapped = _map_error(exc)
            logger.warning(
                "completion_failed model=%s category=%s attachments=%s",
                self._model,
                mapped.category,
                len(attachments),
            )
            raise mapped from exc

        content = response.choices[0].message.content if response.choices else ""
        return str(content or "").strip()
