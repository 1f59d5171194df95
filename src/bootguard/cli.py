"""CLI interface for bootguard"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
import yaml

from bootguard.application.connection_supervisor import FatalConnectionError
from bootguard.application.startup_service import StartupService
from bootguard.infrastructure.config.config_manager import ConfigManager, ConfigurationError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    # The driver is chatty at DEBUG; keep it at INFO unless something is wrong
    logging.getLogger("pymongo").setLevel(max(level, logging.INFO))


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _connection_overrides(
    datastore: Optional[str],
    uri: Optional[str],
    db_name: Optional[str],
    max_retries: Optional[int],
    retry_delay_ms: Optional[int],
) -> Dict[str, Any]:
    """Build config overrides from CLI options

    Returns:
        Overrides dictionary in config file shape (unset options omitted)
    """
    overrides: Dict[str, Any] = {}
    if datastore:
        overrides["datastore"] = datastore
    mongo = {
        "uri": uri,
        "db_name": db_name,
        "max_retries": max_retries,
        "retry_delay_ms": retry_delay_ms,
    }
    mongo = {k: v for k, v in mongo.items() if v is not None}
    if mongo:
        overrides["mongo"] = mongo
    return overrides


def _load_config(ctx: click.Context, overrides: Dict[str, Any]) -> ConfigManager:
    verbose = ctx.obj.get("verbose", False)
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"), overrides=overrides)
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)


def _wait_for_datastore(ctx: click.Context, config_manager: ConfigManager) -> None:
    """Run the connection supervisor, exiting non-zero if it gives up"""
    verbose = ctx.obj.get("verbose", False)
    try:
        service = StartupService(config_manager)
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)

    try:
        attempt_state = asyncio.run(service.wait_until_ready())
    except FatalConnectionError as e:
        _die(str(e), verbose=verbose, exc=e)

    store = service.client.name
    click.echo(f"{store} is ready (database '{config_manager.get_connection_config().db_name}', "
               f"{attempt_state.attempts} attempt(s))")


def connection_options(func):
    """Options shared by commands that connect to the data store"""
    options = [
        click.option(
            "--datastore",
            type=click.Choice(["mongo", "mock"], case_sensitive=False),
            help="Data store client to use. Overrides config.",
        ),
        click.option("--uri", type=str, help="Connection string (default: MONGO_URI env or config)"),
        click.option("--db-name", type=str, help="Database name (default: MONGO_DB_NAME env or config)"),
        click.option("--max-retries", type=click.IntRange(min=0), help="Retries after the first attempt"),
        click.option("--retry-delay-ms", type=click.IntRange(min=0), help="Fixed delay between attempts"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .bootguard.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """bootguard - wait for the data store before starting a service"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@connection_options
@click.pass_context
def connect(ctx, datastore: str, uri: str, db_name: str, max_retries: int, retry_delay_ms: int):
    """Wait until the data store accepts connections.

    Exits with status 1 once the retry budget is spent.
    """
    overrides = _connection_overrides(datastore, uri, db_name, max_retries, retry_delay_ms)
    config_manager = _load_config(ctx, overrides)
    _wait_for_datastore(ctx, config_manager)


@cli.command(context_settings={"ignore_unknown_options": True})
@connection_options
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def run(
    ctx,
    datastore: str,
    uri: str,
    db_name: str,
    max_retries: int,
    retry_delay_ms: int,
    command: Tuple[str, ...],
):
    """Wait for the data store, then replace this process with COMMAND.

    COMMAND: Service command line, e.g. `bootguard run -- node dist/server.js`
    """
    overrides = _connection_overrides(datastore, uri, db_name, max_retries, retry_delay_ms)
    config_manager = _load_config(ctx, overrides)
    _wait_for_datastore(ctx, config_manager)

    logger.info(f"Starting: {' '.join(command)}")
    try:
        os.execvp(command[0], list(command))
    except OSError as e:
        _die(f"Failed to start {command[0]}: {e}", verbose=ctx.obj.get("verbose", False), exc=e)


@cli.command(name="config")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration (credentials redacted)."""
    config_manager = _load_config(ctx, {})
    app_config = config_manager.get_app_config()
    data = app_config.model_dump(mode="json")
    data["mongo"]["uri"] = app_config.mongo.redacted_uri()
    click.echo(yaml.safe_dump(data, sort_keys=False).rstrip())


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
