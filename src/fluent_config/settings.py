"""Runtime settings for the configuration pipeline."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fluent_config.pipeline.merge import SourceErrorPolicy


class PipelineSettings(BaseSettings):
    """Process-level knobs, read from ``FLUENT_CONFIG_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLUENT_CONFIG_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="WARNING", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log output format"
    )
    log_file: Optional[str] = Field(default=None, description="Optional log file path")
    redact_secrets: bool = Field(default=True, description="Mask secret-looking log fields")
    source_error_policy: SourceErrorPolicy = Field(
        default=SourceErrorPolicy.ACCUMULATE,
        description="How source load failures affect the build result",
    )
    enable_validation: bool = Field(
        default=True, description="Run object-graph validation after binding"
    )
    cache_ttl_seconds: float = Field(
        default=300.0, ge=0.0, description="Default lifetime of cached source loads"
    )
    cache_sweep_interval_seconds: float = Field(
        default=300.0, gt=0.0, description="Minimum time between expired-entry sweeps"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {sorted(valid_levels)}")
        return v.upper()


@lru_cache(maxsize=1)
def get_settings() -> PipelineSettings:
    """Process-wide settings instance, read once."""
    return PipelineSettings()
