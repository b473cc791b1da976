"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FOODSHARE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Food Share Matching API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Level applied to the foodshare logger.")
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
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

    # Inference service (Gemini generateContent REST API)
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key.")
    gemini_model: str = Field(default="gemini-2.5-flash")
    gemini_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    gemini_max_output_tokens: int = Field(default=4096, ge=1)
    inference_timeout_seconds: float = Field(default=20.0, gt=0.0)
    inference_max_retries: int = Field(default=1, ge=0)
    inference_backoff_seconds: float = Field(default=1.0, ge=0.0)

    # Matching and lifecycle
    default_radius_km: float = Field(default=10.0, gt=0.0)
    acceptance_reward_points: int = Field(default=100, ge=0)

    # AI enrichment and insights
    behavior_history_limit: int = Field(default=20, ge=1)
    insight_window_days: int = Field(default=30, ge=1)
    insight_sample_limit: int = Field(default=100, ge=1)
    insight_prompt_sample_size: int = Field(default=10, ge=1)
    insight_retention: int = Field(default=10, ge=1)

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

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: Any) -> str:
        return str(value or "INFO").strip().upper()


settings = Settings()
