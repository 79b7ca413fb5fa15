"""Pipeline commands: show the merged map or check it for errors."""

import asyncio
import json
from typing import Optional, Tuple

import click
import yaml

from ..binding.tree import KeyTree
from ..logging import get_logger, mask_value
from ..pipeline.builder import ConfigurationBuilder
from ..pipeline.merge import SourceErrorPolicy
from ..settings import PipelineSettings


def _builder(
    settings: PipelineSettings,
    files: Tuple[str, ...],
    env_prefix: Optional[str],
    no_env: bool,
    require: Tuple[str, ...],
    policy: str,
) -> ConfigurationBuilder:
    builder = ConfigurationBuilder(settings=settings, policy=SourceErrorPolicy(policy))
    # later files override earlier ones; the environment overrides all files
    for index, path in enumerate(files):
        builder.from_file(path, priority=50 + index)
    if not no_env:
        builder.from_environment(prefix=env_prefix, priority=100)
    for key in require:
        builder.required(key)
    return builder


def _pipeline_options(command):
    options = [
        click.option("--file", "-f", "files", multiple=True, type=click.Path(dir_okay=False),
                     help="JSON or YAML file; later files take precedence"),
        click.option("--env-prefix", default=None, help="Only read environment variables with this prefix"),
        click.option("--no-env", is_flag=True, help="Do not read environment variables"),
        click.option("--require", "-r", multiple=True, help="Key that must be present"),
        click.option("--policy", default=SourceErrorPolicy.ACCUMULATE.value,
                     type=click.Choice([p.value for p in SourceErrorPolicy]),
                     help="How source load failures are handled"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def register(main: click.Group) -> None:
    """Attach pipeline commands to the root CLI."""

    @main.command()
    @_pipeline_options
    @click.option("--format", "output_format", default="json", type=click.Choice(["json", "yaml", "flat"]))
    @click.option("--reveal", is_flag=True, help="Print secret-looking values unmasked")
    @click.pass_context
    def show(
        ctx: click.Context,
        files: Tuple[str, ...],
        env_prefix: Optional[str],
        no_env: bool,
        require: Tuple[str, ...],
        policy: str,
        output_format: str,
        reveal: bool,
    ) -> None:
        """Print the merged configuration."""
        logger = get_logger(__name__)
        builder = _builder(ctx.obj["settings"], files, env_prefix, no_env, require, policy)
        result = asyncio.run(builder.build())

        if result.is_failure:
            for message in result.messages:
                click.echo(f"  - {message}", err=True)
            logger.warning("Configuration build failed", errors=len(result.errors))
            ctx.exit(1)

        flat = {
            key: (value if reveal else mask_value(key, value))
            for key, value in result.value.items()
        }
        if output_format == "flat":
            for key, value in flat.items():
                click.echo(f"{key}={value}")
        elif output_format == "yaml":
            click.echo(yaml.safe_dump(KeyTree(flat).to_document(infer=False), sort_keys=False).rstrip())
        else:
            click.echo(json.dumps(KeyTree(flat).to_document(infer=False), indent=2))

    @main.command()
    @_pipeline_options
    @click.pass_context
    def check(
        ctx: click.Context,
        files: Tuple[str, ...],
        env_prefix: Optional[str],
        no_env: bool,
        require: Tuple[str, ...],
        policy: str,
    ) -> None:
        """Build the configuration and report every error."""
        builder = _builder(ctx.obj["settings"], files, env_prefix, no_env, require, policy)
        result = asyncio.run(builder.build())

        if result.is_success:
            click.echo(f"✓ Configuration is valid ({len(result.value)} keys)")
            return

        click.echo(f"✗ Configuration has {len(result.errors)} error(s):")
        for message in result.messages:
            click.echo(f"  - {message}")
        ctx.exit(1)
