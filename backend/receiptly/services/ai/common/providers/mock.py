"""Mock provider — deterministic responses for local development and tests."""

from __future__ import annotations

import json
import time
from typing import Sequence

from .base import BaseProvider, InlineAttachment, ProviderResult

MOCK_RECEIPT = {
    "merchant": "Mock Cafe",
    "date": "2024-01-01",
    "total": 12.5,
    "currency": "USD",
    "items": [
        {"name": "Coffee", "quantity": 2, "price": 4.0},
        {"name": "Croissant", "quantity": 1, "price": 4.5},
    ],
    "category": "Food & Drink",
}


class MockProvider(BaseProvider):
    name = "mock"

    def __init__(self, text: str | None = None) -> None:
        self._text = text if text is not None else json.dumps(MOCK_RECEIPT)

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
        t0 = time.monotonic()
        text = self._text
        elapsed = (time.monotonic() - t0) * 1000
        return ProviderResult(
            raw_text=text,
            model=model or "mock-v1",
            provider=self.name,
            prompt_tokens=len(prompt.split()),
            completion_tokens=len(text.split()),
            latency_ms=round(elapsed, 2),
        )
