from functools import lru_cache
import json

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = [
    "http://localhost:8080",
    "https://receiptly-frontend.vercel.app",
]


def _split_origins(raw: str) -> list[str]:
    """Accept a JSON array or a comma-separated list of origins."""
    raw = (raw or "").strip()
    if not raw:
        return []
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return [str(origin).strip().rstrip("/") for origin in parsed if str(origin).strip()]
    return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )

    environment: str = "development"

    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_jwt_audience: str = ""
    receipts_table: str = "receipts"
    receipt_items_table: str = "receipt_items"

    ai_provider: str = "gemini"
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY", "gemini_api_key"),
    )
    gemini_model: str = "gemini-2.5-flash"
    ai_timeout_seconds: float = 60.0

    max_upload_bytes: int = 10 * 1024 * 1024

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"

    cors_allow_origins_raw: str = Field(
        default=",".join(DEFAULT_CORS_ORIGINS),
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins_raw"),
    )
    cors_extra_origins_raw: str = Field(
        default="",
        validation_alias=AliasChoices("CORS_EXTRA_ORIGINS", "cors_extra_origins_raw"),
    )
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    cors_allow_headers: list[str] = Field(default_factory=lambda: [
        "Authorization",
        "Content-Type",
        "Accept",
    ])

    expose_error_details: bool = False

    @property
    def cors_allow_origins(self) -> list[str]:
        origins = _split_origins(self.cors_allow_origins_raw)
        for extra in _split_origins(self.cors_extra_origins_raw):
            if extra not in origins:
                origins.append(extra)
        return origins

    @property
    def supabase_store_key(self) -> str:
        return self.supabase_service_role_key or self.supabase_key

    @property
    def store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_store_key)

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    def validate_required_config(self) -> list[str]:
        """Return a list of fatal configuration problems.

        A missing store is not listed here: it only disables the export
        endpoint and is reported separately at startup.
        """
        errors: list[str] = []
        if not self.supabase_jwt_secret:
            errors.append("SUPABASE_JWT_SECRET is not set (receipt export will reject every token)")
        if self.ai_provider.strip().lower() == "gemini" and not self.gemini_api_key:
            errors.append("GEMINI_API_KEY is not set (receipt analysis is unavailable)")
        if self.max_upload_bytes <= 0:
            errors.append("MAX_UPLOAD_BYTES must be positive")
        return errors


@lru_cache
def get_settings() -> Settings:
    return Settings()
