"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ORDERTRACK_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Order Tracking API"
    api_prefix: str = "/api"
    environment: Literal["development", "staging", "production"] = Field(
        default="production",
        description="Deployment environment. Unsigned QR acceptance is only possible in development.",
    )

    # QR activation protocol
    qr_code_secret: Optional[SecretStr] = Field(
        default=None,
        description="Shared HMAC secret. Only provision this on trusted signing/verifying servers.",
    )
    qr_allow_unsigned_in_development: bool = Field(
        default=True,
        description="Let QR codes pass signature verification without a secret when environment is development.",
    )
    qr_protocol_version: str = Field(default="1")
    qr_default_expiration_hours: float = Field(default=24.0, gt=0.0)
    qr_max_skew_minutes: float = Field(default=10.0, ge=0.0)
    qr_signing_endpoint_url: Optional[str] = Field(
        default=None,
        description="Remote signing endpoint used when the secret is not available in-process.",
    )
    qr_signing_timeout_seconds: float = Field(default=10.0, gt=0.0)
    qr_signing_max_retries: int = Field(default=2, ge=0)
    qr_signing_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Credential callers must present to the signing endpoints; also sent to the remote signer.",
    )
    qr_signing_backoff_seconds: float = Field(default=0.5, ge=0.0)
    qr_allow_simple_codes: bool = Field(
        default=False,
        description="Accept legacy unsigned order-id QR codes on the scan endpoint.",
    )

    # Routing backend
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing planned routes.",
    )
    osrm_max_retries: int = Field(default=3, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)

    # Live tracking
    tracking_max_samples: int = Field(default=100, ge=2)
    tracking_max_age_minutes: float = Field(default=30.0, gt=0.0)
    tracking_on_route_threshold_meters: float = Field(default=150.0, gt=0.0)
    tracking_min_samples_for_confidence: int = Field(default=5, ge=1)
    tracking_floor_speed_kmh: float = Field(default=10.0, gt=0.0)
    tracking_speed_trend_tolerance_kmh: float = Field(default=8.0, ge=0.0)
    tracking_max_plausible_speed_kmh: float = Field(default=220.0, gt=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:8081",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("qr_code_secret", "qr_signing_api_key", mode="before")
    @classmethod
    def _blank_secret_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


settings = Settings()
