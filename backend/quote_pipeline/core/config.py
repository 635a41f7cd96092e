from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from decimal import Decimal
from functools import lru_cache
from typing import Any, ClassVar
import json
from pathlib import Path
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=True,
    )

    # Mount point for the pipeline routes. Empty serves them at the root
    # paths (/calculate-quote-totals, /generate-quote-pdf).
    API_PREFIX: str = ""

    # Use an absolute path so running the app from different directories
    # always resolves the same DB file.
    BASE_DIR: ClassVar[Path] = Path(__file__).resolve().parents[2]
    SQLALCHEMY_DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'quotes.db'}"

    # Bearer tokens are issued by the upstream identity provider (e.g. the
    # Supabase auth service) and verified here with the shared JWT secret.
    AUTH_JWT_SECRET: str = "fallback_secret_for_dev_only"
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str = ""

    # Used when the global settings store has no gst_rate entry
    DEFAULT_GST_RATE: Decimal = Decimal("10")

    # S3-compatible object storage (Cloudflare R2)
    STORAGE_BUCKET: str = "quote-documents"
    R2_ACCOUNT_ID: str = ""
    R2_ACCESS_KEY_ID: str = ""
    R2_SECRET_ACCESS_KEY: str = ""
    # Example: https://<account_id>.r2.cloudflarestorage.com or EU endpoint
    R2_S3_ENDPOINT: str = ""
    SIGNED_URL_TTL_SECONDS: int = 24 * 60 * 60

    # Document branding
    ISSUER_NAME: str = "ChargeSource"
    ISSUER_TAGLINE: str = "EV Infrastructure Solutions"
    CURRENCY_SYMBOL: str = "$"

    CORS_ORIGINS: list[str] = ["*"]

    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ORIGINS", mode="before")
    def split_origins(cls, v: Any) -> list[str]:
        """Parse comma-separated or JSON list of origins from environment."""
        if isinstance(v, str):
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator(
        "AUTH_JWT_SECRET",
        "R2_ACCOUNT_ID",
        "R2_ACCESS_KEY_ID",
        "R2_SECRET_ACCESS_KEY",
        "R2_S3_ENDPOINT",
        "STORAGE_BUCKET",
        mode="before",
    )
    def strip_whitespace(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def storage_endpoint_url(self) -> str | None:
        if self.R2_S3_ENDPOINT:
            return self.R2_S3_ENDPOINT
        if self.R2_ACCOUNT_ID:
            return f"https://{self.R2_ACCOUNT_ID}.r2.cloudflarestorage.com"
        return None


def load_settings() -> Settings:
    return Settings(_env_file=os.getenv("ENV_FILE", str(Path(__file__).resolve().parents[3] / ".env")))


@lru_cache
def get_settings() -> Settings:
    return load_settings()
