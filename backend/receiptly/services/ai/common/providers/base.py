"""Abstract base for all AI providers."""

from __future__ import annotations

import abc
import base64
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class InlineAttachment:
    """Binary content sent inline with a prompt (e.g. a receipt photo)."""

    data: bytes
    mime_type: str = "image/jpeg"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass(frozen=True)
class ProviderResult:
    """Immutable result returned by every provider."""

    raw_text: str
    model: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0


class BaseProvider(abc.ABC):
    """Contract that every AI provider must implement."""

    name: str = "base"

    @property
    def is_configured(self) -> bool:
        return True

    @abc.abstractmethod
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
        """Send *prompt* (plus inline *attachments*) and return a ``ProviderResult``."""
