"""CLI commands for pginspect."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from pginspect.config import CONFIG_FILENAME, Config
from pginspect.core.introspection import SchemaIntrospector, connect
from pginspect.core.snapshot import take_snapshot
from pginspect.exceptions import ConfigError, PgInspectError
from pginspect.logging_config import configure_logging

logger = logging.getLogger("pginspect.cli")

EXIT_FAILURE = 1
EXIT_EMPTY = 2


@click.group()
@click.version_option(package_name="pginspect")
def cli() -> None:
    """pginspect - PostgreSQL information schema snapshot tool."""
    pass


@cli.command()
@click.option("--db", "url", help="PostgreSQL connection string.")
@click.option(
    "--schema",
    "schemas",
    multiple=True,
    help="Schema to include (repeatable, exact name). Overrides the config whitelist.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"Config file (default: nearest {CONFIG_FILENAME}).",
)
@click.option(
    "--output",
    "-o",
    default="-",
    show_default=True,
    help="Where to write the snapshot JSON ('-' for stdout).",
)
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indentation.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides config).",
)
@click.option("--fail-on-empty", is_flag=True, help="Exit with status 2 when a stage is empty.")
def snapshot(
    url: Optional[str],
    schemas: tuple[str, ...],
    config_path: Optional[Path],
    output: str,
    indent: int,
    log_level: Optional[str],
    fail_on_empty: bool,
) -> None:
    """Snapshot whitelisted schemas as a JSON metadata graph."""
    try:
        config = Config.from_toml(config_path) if config_path else Config.find_and_load()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILURE)

    configure_logging(
        level=log_level or config.logging.level,
        timestamp_format=config.logging.timestamp_format,
        color=config.logging.color,
    )

    whitelist = list(schemas) or config.database.schemas
    logger.debug(f"schema whitelist: {whitelist}")

    try:
        with connect(url or config.database.url) as conn:
            result = take_snapshot(SchemaIntrospector(conn, whitelist))
    except PgInspectError as e:
        logger.error(str(e))
        sys.exit(EXIT_FAILURE)

    if result is None:
        if fail_on_empty:
            sys.exit(EXIT_EMPTY)
        return

    document = result.to_json(indent=indent if indent > 0 else None)
    if output == "-":
        click.echo(document)
    else:
        Path(output).write_text(document + "\n")
        logger.info(f"snapshot written to {output}")


@cli.command()
@click.argument(
    "path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=CONFIG_FILENAME,
)
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
def init(path: Path, force: bool) -> None:
    """Write a default configuration file."""
    if path.exists() and not force:
        click.echo(f"Error: {path} already exists (use --force to overwrite)", err=True)
        sys.exit(EXIT_FAILURE)

    Config().to_toml(path, include_password=False)
    click.echo(f"✓ Wrote {path}")


if __name__ == "__main__":
    cli()
