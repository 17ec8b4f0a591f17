"""Google Gemini provider (Generative Language REST API)."""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import httpx

from .base import BaseProvider, InlineAttachment, ProviderResult

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"


class GeminiProviderError(RuntimeError):
    """Raised when Gemini answers with an error or an unusable payload."""


class GeminiProvider(BaseProvider):
    name = "gemini"

    def __init__(self, api_key: str, *, default_model: str = DEFAULT_MODEL) -> None:
        self._api_key = api_key
        self._default_model = default_model or DEFAULT_MODEL

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def generate(
        self,
        prompt: str,
        *,
        attachments: Sequence[InlineAttachment] = (),
        response_mime_type: str | None = None,
        model: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout_seconds: float = 60.0,
    ) -> ProviderResult:
        model = model or self._default_model
        t0 = time.monotonic()

        parts: list[dict[str, Any]] = [{"text": prompt}]
        for attachment in attachments:
            parts.append(
                {
                    "inline_data": {
                        "mime_type": attachment.mime_type,
                        "data": attachment.to_base64(),
                    }
                }
            )

        generation_config: dict[str, Any] = {}
        if response_mime_type:
            generation_config["responseMimeType"] = response_mime_type
        if temperature is not None:
            generation_config["temperature"] = temperature
        if max_tokens is not None:
            generation_config["maxOutputTokens"] = max_tokens

        body: dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
        if generation_config:
            body["generationConfig"] = generation_config

        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            resp = await client.post(
                f"{GEMINI_API_BASE}/models/{model}:generateContent",
                headers={
                    "x-goog-api-key": self._api_key,
                    "Content-Type": "application/json",
                },
                json=body,
            )
            if resp.is_error:
                raise GeminiProviderError(_error_message(resp))
            data = resp.json()

        elapsed = (time.monotonic() - t0) * 1000
        text = _response_text(data)
        usage = data.get("usageMetadata", {})

        return ProviderResult(
            raw_text=text,
            model=model,
            provider=self.name,
            prompt_tokens=usage.get("promptTokenCount", 0),
            completion_tokens=usage.get("candidatesTokenCount", 0),
            latency_ms=round(elapsed, 2),
        )


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error") or {}
        message = error.get("message") if isinstance(error, dict) else None
        if message:
            return f"Gemini API error {resp.status_code}: {message}"
    return f"Gemini API error {resp.status_code}"


def _response_text(data: dict[str, Any]) -> str:
    """Join the text parts of the first candidate."""
    candidates = data.get("candidates") or []
    if not candidates:
        feedback = data.get("promptFeedback") or {}
        reason = feedback.get("blockReason")
        if reason:
            raise GeminiProviderError(f"Gemini blocked the prompt: {reason}")
        return ""
    content = candidates[0].get("content") or {}
    texts = [part.get("text", "") for part in content.get("parts") or [] if isinstance(part, dict)]
    return "".join(texts)
