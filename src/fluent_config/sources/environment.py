"""Environment variable source."""

import os
from typing import Mapping, Optional

from fluent_config.core.result import Result
from fluent_config.logging import get_logger
from fluent_config.sources.base import ConfigurationSource

logger = get_logger(__name__)


class EnvironmentSource(ConfigurationSource):
    """Reads process environment variables.

    ``DATABASE__HOST`` is addressed as ``Database:Host``. With a prefix, only
    variables starting with it (case-insensitively) are kept and the prefix
    is stripped.
    """

    def __init__(
        self,
        priority: int = 100,
        prefix: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        name: str = "Environment",
    ):
        super().__init__(name, priority)
        self.prefix = prefix
        self._environ = environ

    async def load(self) -> Result[Mapping[str, str]]:
        environ = os.environ if self._environ is None else self._environ
        values = {}
        for key, value in environ.items():
            if self.prefix:
                if not key.lower().startswith(self.prefix.lower()):
                    continue
                key = key[len(self.prefix):]
                if not key:
                    continue
            values[key] = value
        self._values = values
        logger.debug("Loaded environment variables", source=self.name, key_count=len(values))
        return Result.success(dict(values))
