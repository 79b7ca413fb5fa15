"""End-to-end pipeline tests: files, environment, declarations and binding."""

import pytest

from fluent_config import ConfigurationBuilder, Result, SourceErrorPolicy
from fluent_config.core.errors import ErrorKind
from tests.sample_types import AppSettings, LogLevel, Root

pytestmark = pytest.mark.integration


def _port_in_range(value: str):
    port = int(value)
    if not 1 <= port <= 65535:
        return f"port {port} is out of range"
    return None


class TestLayeredPipeline:
    """Test cases covering the whole build-then-bind flow."""

    @pytest.mark.asyncio
    async def test_environment_overrides_file(self, builder, write_config):
        """A priority 100 environment beats a priority 50 file in both binding modes."""
        path = write_config("appsettings.json", {"A": {"B": "json"}})

        result = await builder.from_file(path).from_environment(environ={"A__B": "env"}).required("A:B").build()

        assert result.is_success
        configuration = result.value
        assert configuration["A:B"] == "env"
        assert builder.bind(Root, configuration).value.a.b == "env"
        assert builder.bind_structured(Root, configuration).value.a.b == "env"

    @pytest.mark.asyncio
    async def test_full_pipeline(self, builder, write_config):
        """YAML defaults, env overrides and declarations feed a typed object."""
        path = write_config(
            "app.yaml",
            {
                "Name": "  billing  ",
                "Level": "info",
                "Database": {"Host": "yaml-db", "Port": 5432},
                "Endpoints": [{"Name": "primary", "Weight": 3}],
            },
        )
        environ = {
            "APP_Database__Host": "env-db",
            "APP_Endpoints__1__Name": "secondary",
            "APP_Tags__team": "payments",
        }

        result = await (
            builder.from_file(path)
            .from_environment(prefix="APP_", environ=environ)
            .from_memory({"Ratio": "0.9"}, priority=10)
            .optional("Level", "warning")
            .transform("Name", lambda v: Result.success(v.strip()))
            .validate("Database:Port", _port_in_range)
            .required("Database:Host")
            .build_as(AppSettings)
        )

        assert result.is_success, result.messages
        settings = result.value
        assert settings.name == "billing"
        assert settings.level is LogLevel.INFO
        assert settings.ratio == 0.9
        assert settings.database.host == "env-db"
        assert settings.database.port == 5432
        assert [(e.name, e.weight) for e in settings.endpoints] == [("primary", 3), ("secondary", 1)]
        assert settings.tags == {"team": "payments"}

    @pytest.mark.asyncio
    async def test_errors_from_every_stage(self, builder, write_config):
        """Source, declaration and validation errors are all reported."""
        path = write_config("bad.json", {"Database": {"Port": "99999"}})

        result = await (
            builder.from_file(path)
            .from_file(path.parent / "missing.json")
            .validate("Database:Port", _port_in_range)
            .required("Name")
            .build()
        )

        assert [e.kind for e in result.errors] == [
            ErrorKind.SOURCE_LOAD,
            ErrorKind.DECLARATION_VALIDATION,
            ErrorKind.MISSING_REQUIRED_KEY,
        ]
        assert "port 99999 is out of range" in result.messages[1]

    @pytest.mark.asyncio
    async def test_optional_file_and_fail_fast(self, pipeline_settings, tmp_path):
        """Optional files are skipped; FAIL_FAST stops at source errors."""
        builder = ConfigurationBuilder(settings=pipeline_settings, policy=SourceErrorPolicy.FAIL_FAST)
        builder.from_file(tmp_path / "optional.json", optional=True).from_memory({"A": "1"})

        assert (await builder.build()).is_success

        builder.from_file(tmp_path / "required.json")
        result = await builder.required("Never:Checked").build()

        assert [e.kind for e in result.errors] == [ErrorKind.SOURCE_LOAD]

