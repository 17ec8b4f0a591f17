from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import jwt
import pytest
from fastapi.testclient import TestClient

from receiptly.core.config import get_settings
from receiptly.core.errors import StoreError
from receiptly.core.store import ReceiptStore, get_receipt_store
from receiptly.schemas.receipt import Receipt
from receiptly.services.ai.common.providers import (
    BaseProvider,
    InlineAttachment,
    ProviderResult,
    get_receipt_provider,
)

TEST_JWT_SECRET = "receiptly-test-secret-0123456789abcdef"


@pytest.fixture(autouse=True)
def _reset_settings_cache(monkeypatch):
    # Tests mutate env vars; never leak a cached Settings instance across tests.
    monkeypatch.setenv("SUPABASE_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.delenv("SUPABASE_JWT_AUDIENCE", raising=False)
    monkeypatch.delenv("MAX_UPLOAD_BYTES", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_token(
    sub: Optional[str] = "00000000-0000-0000-0000-000000000001",
    *,
    secret: str = TEST_JWT_SECRET,
    expires_in: timedelta = timedelta(hours=1),
    **claims,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
        **claims,
    }
    if sub is not None:
        payload["sub"] = sub
    token = jwt.encode(payload, secret, algorithm="HS256")
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def auth_header(sub: str = "00000000-0000-0000-0000-000000000001", **kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(sub, **kwargs)}"}


class FakeReceiptStore(ReceiptStore):
    """In-memory store that records every lookup."""

    def __init__(self, receipts: Sequence[Receipt] = ()) -> None:
        self.receipts = {r.id: r for r in receipts}
        self.calls: list[tuple[str, str]] = []
        self.fail = False

    def add(self, receipt: Receipt) -> Receipt:
        self.receipts[receipt.id] = receipt
        return receipt

    def get_owned_receipt(self, receipt_id: str, owner_id: str) -> Optional[Receipt]:
        self.calls.append((receipt_id, owner_id))
        if self.fail:
            raise StoreError()
        receipt = self.receipts.get(receipt_id)
        if receipt is None or receipt.owner_id != owner_id:
            return None
        return receipt


class FakeProvider(BaseProvider):
    """Provider returning a canned text (or raising) and recording calls."""

    name = "fake"

    def __init__(self, text: str = '{"merchant": "Cafe"}', *, error: Exception | None = None, configured: bool = True) -> None:
        self.text = text
        self.error = error
        self.configured = configured
        self.calls: list[dict] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

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
        self.calls.append(
            {
                "prompt": prompt,
                "attachments": list(attachments),
                "response_mime_type": response_mime_type,
                "timeout_seconds": timeout_seconds,
            }
        )
        if self.error is not None:
            raise self.error
        return ProviderResult(raw_text=self.text, model=model or "fake-v1", provider=self.name)


@pytest.fixture()
def store():
    return FakeReceiptStore()


@pytest.fixture()
def provider():
    return FakeProvider()


@pytest.fixture()
def client(store, provider):
    from receiptly.main import app

    app.dependency_overrides[get_receipt_store] = lambda: store
    app.dependency_overrides[get_receipt_provider] = lambda: provider
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
