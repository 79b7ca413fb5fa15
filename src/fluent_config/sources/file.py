"""JSON and YAML file source."""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml

from fluent_config.core.keys import KEY_SEPARATOR
from fluent_config.core.result import Result
from fluent_config.logging import get_logger
from fluent_config.sources.base import ConfigurationSource

logger = get_logger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


def flatten_document(document: Any, prefix: str = "") -> Dict[str, str]:
    """Flatten a parsed JSON/YAML document into ``a:b:0`` style keys."""
    flat: Dict[str, str] = {}
    if isinstance(document, dict):
        for key, value in document.items():
            child = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else str(key)
            flat.update(flatten_document(value, child))
    elif isinstance(document, list):
        for index, value in enumerate(document):
            child = f"{prefix}{KEY_SEPARATOR}{index}" if prefix else str(index)
            flat.update(flatten_document(value, child))
    elif prefix:
        flat[prefix] = _render_leaf(document)
    return flat


def _render_leaf(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class FileSource(ConfigurationSource):
    """Loads a ``.json``, ``.yaml`` or ``.yml`` file.

    A missing file is an empty configuration when ``optional`` is set and a
    load failure otherwise.
    """

    supports_hot_reload = True

    def __init__(
        self,
        path: Union[str, Path],
        priority: int = 50,
        optional: bool = False,
        name: str = "",
    ):
        self.path = Path(path)
        super().__init__(name or f"File:{self.path.name}", priority)
        self.optional = optional

    async def load(self) -> Result[Mapping[str, str]]:
        if not self.path.exists():
            if self.optional:
                logger.debug("Optional configuration file not found", source=self.name)
                self._values = {}
                return Result.success({})
            return Result.failure(f"Configuration file not found: {self.path}")

        try:
            text = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except OSError as e:
            return Result.failure(f"Cannot read {self.path}: {e}")

        try:
            document = self._parse(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            return Result.failure(f"Invalid content in {self.path}: {e}")

        if document is None:
            document = {}
        if not isinstance(document, dict):
            return Result.failure(
                f"Root of {self.path} must be an object, got {type(document).__name__}"
            )

        self._values = flatten_document(document)
        logger.debug("Loaded configuration file", source=self.name, key_count=len(self._values))
        return Result.success(dict(self._values))

    def _parse(self, text: str) -> Any:
        if self.path.suffix.lower() in YAML_SUFFIXES:
            return yaml.safe_load(text)
        if not text.strip():
            return {}
        return json.loads(text)
