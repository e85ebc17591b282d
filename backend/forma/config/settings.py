"""Runtime configuration read from the environment (and an optional .env file)."""

from functools import lru_cache
from typing import Annotated, Any, List

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from forma.utility.path_finder import Finder

path_finder = Finder()
ENV_FILE = path_finder.get_directory("env")
# the gateway reads the credential from os.environ on every call
load_dotenv(ENV_FILE)


class Settings(BaseSettings):
    """Application settings.

    Fields are read from ``FORMA_``-prefixed environment variables when the
    instance is created. The model credential is deliberately not part of the
    settings: only the name of the variable that holds it is, so the gateway
    can read a fresh value on every call.
    """

    model_config = SettingsConfigDict(
        env_prefix="FORMA_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "Forma Room Designer API"
    app_version: str = "1.0.0"
    run_mode: str = Field(
        default="actual", validation_alias=AliasChoices("RUN_MODE", "FORMA_RUN_MODE")
    )

    # Model selection and generation parameters
    text_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-2.5-flash-image"
    suggestion_max_tokens: int = Field(default=8192, gt=0)
    summary_max_tokens: int = Field(default=1024, gt=0)
    suggestion_temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    summary_temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    image_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    credential_env_var: str = Field(
        default="GEMINI_API_KEY", validation_alias="FORMA_CREDENTIAL_ENV"
    )

    # Inputs
    max_upload_size_mb: int = Field(default=10, ge=0, validation_alias="FORMA_MAX_UPLOAD_MB")
    max_design_goals_chars: int = Field(
        default=2000, gt=0, validation_alias="FORMA_MAX_GOALS_CHARS"
    )

    # Sessions
    session_ttl_seconds: float = Field(default=3600.0, gt=0)
    max_sessions: int = Field(default=500, gt=0)

    # Diagnostics
    raw_response_preview_chars: int = Field(
        default=2000, ge=0, validation_alias="FORMA_RAW_PREVIEW_CHARS"
    )
    log_level: str = "INFO"
    log_to_file: bool = False

    # HTTP
    cors_origins: Annotated[List[str], NoDecode] = ["*"]

    @field_validator("run_mode", mode="before")
    @classmethod
    def normalize_run_mode(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def is_mock(self) -> bool:
        """True when the app should answer from canned data instead of Gemini."""
        return self.run_mode == "mock"

    @property
    def max_upload_bytes(self) -> int:
        """Upload limit expressed in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
