"""Root Click group for the fluent-config CLI."""

from typing import Optional

import click

from ..logging import get_logger, setup_logging
from ..settings import get_settings
from .commands import register


@click.group()
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Defaults to FLUENT_CONFIG_LOG_LEVEL",
)
@click.option(
    "--log-format",
    default=None,
    type=click.Choice(["console", "json"]),
    help="Defaults to FLUENT_CONFIG_LOG_FORMAT",
)
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write logs to this file")
@click.pass_context
def main(
    ctx: click.Context, log_level: Optional[str], log_format: Optional[str], log_file: Optional[str]
) -> None:
    """fluent-config - merge, check and inspect layered configuration."""
    ctx.ensure_object(dict)
    settings = get_settings()
    ctx.obj["settings"] = settings

    setup_logging(
        log_level=log_level or settings.log_level,
        log_format=log_format or settings.log_format,
        log_file=log_file or settings.log_file,
        redact_secrets=settings.redact_secrets,
    )
    get_logger(__name__).debug(
        "fluent-config CLI initialized", log_level=log_level or settings.log_level
    )


register(main)


if __name__ == "__main__":  # pragma: no cover
    main()  # pylint: disable=no-value-for-parameter
