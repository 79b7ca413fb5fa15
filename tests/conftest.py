"""
Shared pytest configuration for fluent-config tests.

Provides isolated shape registries, default pipeline settings that ignore
the developer's environment, and helpers for writing configuration files.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict

import pytest
import yaml

from fluent_config.binding.shapes import ShapeRegistry
from fluent_config.logging import setup_logging
from fluent_config.pipeline.builder import ConfigurationBuilder
from fluent_config.settings import PipelineSettings


@pytest.fixture(scope="session", autouse=True)
def quiet_logging():
    """Keep library log output out of test reports."""
    setup_logging(log_level="WARNING", log_format="console")
    yield


@pytest.fixture
def registry() -> ShapeRegistry:
    """A fresh shape registry so cache assertions are not order dependent."""
    return ShapeRegistry()


@pytest.fixture
def pipeline_settings() -> PipelineSettings:
    return PipelineSettings(_env_file=None)


@pytest.fixture
def builder(pipeline_settings: PipelineSettings) -> ConfigurationBuilder:
    return ConfigurationBuilder(settings=pipeline_settings)


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str, Dict[str, Any]], Path]:
    """Write a JSON or YAML document (chosen by suffix) and return its path."""

    def _write(name: str, document: Dict[str, Any]) -> Path:
        path = tmp_path / name
        if path.suffix in {".yaml", ".yml"}:
            path.write_text(yaml.safe_dump(document), encoding="utf-8")
        else:
            path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write
