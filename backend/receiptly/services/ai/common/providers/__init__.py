"""Provider factory — returns the configured provider instance."""

from __future__ import annotations

import logging
from functools import lru_cache

from receiptly.core.config import get_settings

from .base import BaseProvider, InlineAttachment, ProviderResult
from .gemini import GeminiProvider
from .mock import MockProvider

logger = logging.getLogger(__name__)

__all__ = [
    "get_provider",
    "get_receipt_provider",
    "BaseProvider",
    "GeminiProvider",
    "InlineAttachment",
    "MockProvider",
    "ProviderResult",
]


def get_provider(provider_name: str) -> BaseProvider:
    """Return a provider instance for *provider_name*.

    A Gemini provider without an API key is still returned; the caller checks
    ``is_configured`` so a missing key surfaces as a configuration error
    instead of silently producing mock output.
    """
    settings = get_settings()
    name = provider_name.lower().strip()

    if name == "mock":
        return MockProvider()

    if name != "gemini":
        logger.warning("Unknown provider %r – using gemini", name)

    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set – receipt analysis will fail")
    return GeminiProvider(api_key=settings.gemini_api_key, default_model=settings.gemini_model)


@lru_cache
def get_receipt_provider() -> BaseProvider:
    """Process-wide provider used by the receipt analysis endpoint."""
    return get_provider(get_settings().ai_provider)
