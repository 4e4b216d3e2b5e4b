"""Application settings using Pydantic Settings for environment variable management."""

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from lgtm_reviewer.models.retry import RetryPolicy
from lgtm_reviewer.utils.durations import parse_duration


def default_config_path() -> Path:
    """Locate the YAML configuration file.

    ``LGTM_CONFIG_FILE`` wins, then ``$XDG_CONFIG_HOME/lgtm-reviewer/config.yaml``,
    then ``~/.config/lgtm-reviewer/config.yaml``.
    """
    explicit = os.environ.get("LGTM_CONFIG_FILE")
    if explicit:
        return Path(explicit)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "lgtm-reviewer" / "config.yaml"

    return Path.home() / ".config" / "lgtm-reviewer" / "config.yaml"


class Settings(BaseSettings):
    """Application settings loaded from init kwargs, environment, .env and YAML."""

    model_config = SettingsConfigDict(
        env_prefix="LGTM_",
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Google / Gemini authentication
    google_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "google_api_key", "LGTM_GOOGLE_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"
        ),
        description="Gemini API key (optional when using ADC)",
    )
    google_use_adc: bool = Field(
        default=False, description="Use Application Default Credentials (Vertex AI)"
    )
    google_cloud_project: str | None = Field(
        default=None, description="GCP project for Vertex AI when using ADC"
    )
    google_cloud_location: str = Field(
        default="global", description="GCP location for Vertex AI when using ADC"
    )

    # Model configuration
    gemini_model: str = Field(
        default="gemini-3-pro-preview", description="Gemini model to use"
    )
    gemini_temperature: float = Field(
        default=0.2, ge=0.0, le=2.0, description="Temperature for model responses"
    )

    # Retry configuration
    retry_max_retries: int = Field(
        default=5, ge=0, description="Retries after the first attempt; 0 disables retry"
    )
    retry_initial_backoff: float = Field(
        default=1.0, gt=0, description="Initial backoff (seconds or a duration string like '1s')"
    )
    retry_max_backoff: float = Field(
        default=60.0, gt=0, description="Maximum backoff (seconds or a duration string like '1s')"
    )
    retry_backoff_multiplier: float = Field(
        default=1.4, gt=1.0, description="Backoff growth factor per attempt"
    )

    # Conversation limits
    max_exploration_turns: int = Field(
        default=25, ge=1, description="Maximum file-request turns before giving up"
    )
    max_file_bytes: int = Field(
        default=1024 * 1024, gt=0, description="Largest file served to the model"
    )

    # Prompt overrides
    review_prompt_path: str | None = Field(
        default=None, description="Custom review prompt template"
    )
    context_gathering_prompt_path: str | None = Field(
        default=None, description="Custom context gathering prompt template"
    )

    # Observability
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for observability"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Application environment"
    )

    @field_validator("retry_initial_backoff", "retry_max_backoff", mode="before")
    @classmethod
    def parse_backoff_duration(cls, v: Any) -> Any:
        """Accept duration strings such as "1s" or "500ms"."""
        if isinstance(v, str):
            stripped = v.strip()
            try:
                return float(stripped)
            except ValueError:
                return parse_duration(stripped)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=default_config_path()),
            file_secret_settings,
        )

    def retry_policy(self) -> RetryPolicy:
        """Build the immutable retry policy shared by every review call."""
        return RetryPolicy(
            max_retries=self.retry_max_retries,
            initial_backoff=self.retry_initial_backoff,
            max_backoff=max(self.retry_max_backoff, self.retry_initial_backoff),
            backoff_multiplier=self.retry_backoff_multiplier,
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def has_credentials(self) -> bool:
        """Check whether an authentication method is configured."""
        return bool(self.google_api_key) or self.google_use_adc


# Global settings instance
settings = Settings()
