"""Tests for pipeline settings."""

import pytest
from pydantic import ValidationError

from fluent_config.pipeline.builder import ConfigurationBuilder
from fluent_config.pipeline.merge import SourceErrorPolicy
from fluent_config.settings import PipelineSettings, get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestPipelineSettings:
    """Test cases for environment-driven settings."""

    def test_defaults(self, pipeline_settings):
        """Defaults accumulate errors and validate bound objects."""
        assert pipeline_settings.log_level == "WARNING"
        assert pipeline_settings.source_error_policy is SourceErrorPolicy.ACCUMULATE
        assert pipeline_settings.enable_validation is True
        assert pipeline_settings.cache_ttl_seconds == 300.0

    def test_environment_overrides(self, monkeypatch):
        """FLUENT_CONFIG_* variables override defaults."""
        monkeypatch.setenv("FLUENT_CONFIG_LOG_LEVEL", "debug")
        monkeypatch.setenv("FLUENT_CONFIG_SOURCE_ERROR_POLICY", "fail_fast")
        monkeypatch.setenv("FLUENT_CONFIG_ENABLE_VALIDATION", "false")

        settings = PipelineSettings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.source_error_policy is SourceErrorPolicy.FAIL_FAST
        assert settings.enable_validation is False

    def test_invalid_values_are_rejected(self):
        """Unknown levels and negative TTLs fail validation."""
        with pytest.raises(ValidationError):
            PipelineSettings(_env_file=None, log_level="LOUD")
        with pytest.raises(ValidationError):
            PipelineSettings(_env_file=None, cache_ttl_seconds=-1)

    def test_get_settings_is_cached(self):
        """The process-wide settings are read once."""
        assert get_settings() is get_settings()

    def test_builder_uses_settings(self, monkeypatch):
        """The builder picks its policy and validation flag from settings."""
        monkeypatch.setenv("FLUENT_CONFIG_SOURCE_ERROR_POLICY", "ignore")
        monkeypatch.setenv("FLUENT_CONFIG_ENABLE_VALIDATION", "false")

        builder = ConfigurationBuilder()

        assert builder.policy is SourceErrorPolicy.IGNORE
        assert builder.binding_options.enable_validation is False
