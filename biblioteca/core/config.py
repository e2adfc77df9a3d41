# python
# biblioteca/core/config.py
"""Configuration settings for the Biblioteca Inteligente API.

Uses Pydantic BaseSettings for environment variable management.
"""
from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentEnum(str, Enum):
    development = "development"
    testing = "testing"
    staging = "staging"
    production = "production"


class LogLevelEnum(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


MODEL_PREFIX = "models/"


def normalize_model_id(value: str | None) -> str | None:
    """Strip whitespace and the ``models/`` prefix from a Gemini model id."""
    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    if trimmed.startswith(MODEL_PREFIX):
        return trimmed[len(MODEL_PREFIX) :]
    return trimmed


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="Biblioteca Inteligente API", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")

    # ===== Storage & Auth (Supabase) =====
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_anon_key: str | None = Field(default=None, description="Supabase public anon key")
    supabase_bucket: str = Field(default="login_b", description="Storage bucket for documents")
    supabase_jwt_secret: str | None = Field(
        default=None, description="JWT secret for local token verification"
    )
    storage_list_limit: int = Field(default=1000, description="Maximum objects per listing")
    signed_url_ttl: int = Field(default=300, description="Signed URL lifetime in seconds")

    # ===== AI Service (Gemini) =====
    gemini_api_key: str | None = Field(default=None, description="Google Gemini API key")
    gemini_model: str | None = Field(default="gemini-1.5-flash", description="Gemini model to use")
    ai_request_timeout: int | None = Field(
        default=None, description="AI request timeout in seconds (SDK default when unset)"
    )

    # ===== Summary History =====
    history_display_limit: int = Field(default=10, description="History entries shown to the user")
    history_context_limit: int = Field(default=3, description="History entries fed into prompts")

    # ===== Application Limits =====
    max_file_size: int = Field(default=52428800, description="Maximum file size in bytes (50MB)")
    session_idle_timeout: int = Field(
        default=3600, description="Seconds of inactivity before a library session is evicted"
    )

    # ===== CORS Settings =====
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://localhost:8080,http://127.0.0.1:3000",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")

    # ===== Server Settings =====
    host: str = Field(default="127.0.0.1", description="Host to bind the server")
    port: int = Field(default=8000, description="Port to bind the server")

    # ===== Computed Properties =====
    @property
    def is_development(self) -> bool:
        return self.environment == EnvironmentEnum.development

    @property
    def is_testing(self) -> bool:
        return self.environment == EnvironmentEnum.testing

    @property
    def has_ai_enabled(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_storage(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def gemini_model_id(self) -> str | None:
        return normalize_model_id(self.gemini_model)

    @property
    def supabase_base_url(self) -> str:
        return (self.supabase_url or "").rstrip("/")

    # ===== Validation Methods =====
    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        if v and isinstance(v, str):
            lv = v.lower()
            if lv in ["dev", "develop"]:
                return "development"
            if lv in ["prod"]:
                return "production"
            return lv
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        if v and isinstance(v, str):
            return v.upper()
        return v

    @field_validator("max_file_size")
    @classmethod
    def validate_file_size(cls, v):
        if v > 100 * 1024 * 1024:
            raise ValueError("Maximum file size cannot exceed 100MB")
        return v

    @field_validator("history_display_limit", "history_context_limit")
    @classmethod
    def validate_history_limits(cls, v):
        if v < 0:
            raise ValueError("History limits cannot be negative")
        return v


settings = Settings()


class ConfigValidator:
    @staticmethod
    def validate_required_settings():
        errors = []
        if not settings.supabase_url:
            errors.append("SUPABASE_URL is required")
        if not settings.supabase_anon_key:
            errors.append("SUPABASE_ANON_KEY is required")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

    @staticmethod
    def get_feature_status() -> dict:
        return {
            "ai_enabled": settings.has_ai_enabled,
            "storage_configured": settings.has_storage,
            "bucket": settings.supabase_bucket,
            "local_token_verification": bool(settings.supabase_jwt_secret),
            "environment": settings.environment.value,
        }


def get_config_summary() -> dict:
    return {
        "app_name": settings.app_name,
        "version": settings.version,
        "environment": settings.environment.value,
        "debug": settings.debug,
        "features": ConfigValidator.get_feature_status(),
        "model": settings.gemini_model_id,
    }


__all__ = [
    "settings",
    "Settings",
    "ConfigValidator",
    "get_config_summary",
    "normalize_model_id",
    "EnvironmentEnum",
    "LogLevelEnum",
]
