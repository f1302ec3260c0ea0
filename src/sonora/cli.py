"""CLI interface for Sonora"""

import json
import logging
from pathlib import Path
from typing import Optional

import click
import yaml

from sonora.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from sonora.infrastructure.http_client import ApiClient
from sonora.infrastructure.redacting_logger import RedactingLogger

logger = logging.getLogger(__name__)

METHODS = ["GET", "POST", "PATCH", "DELETE"]


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


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config(ctx: click.Context) -> ConfigManager:
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _create_client(config_manager: ConfigManager, verbose: bool) -> ApiClient:
    """Create API client from config

    Args:
        config_manager: Configuration manager
        verbose: Verbose mode for error reporting

    Returns:
        ApiClient instance
    """
    try:
        return ApiClient(
            api_config=config_manager.get_api_config(),
            retry_config=config_manager.get_retry_config(),
            logging_config=config_manager.get_logging_config(),
        )
    except ValueError as e:
        _die(str(e), verbose=verbose, exc=e)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .sonora.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """Sonora - resilient speech API client"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("method", type=click.Choice(METHODS, case_sensitive=False))
@click.argument("endpoint", type=str)
@click.option("--data", type=str, help="JSON request body (not allowed with GET)")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the raw response body to a file (e.g. synthesized audio)",
)
@click.pass_context
def request(ctx, method: str, endpoint: str, data: Optional[str], output: Optional[Path]):
    """Send a single request to the API.

    METHOD: HTTP method (GET, POST, PATCH, DELETE)
    ENDPOINT: API path relative to the base URI (e.g. 'voices')
    """
    verbose = ctx.obj.get("verbose", False)
    method = method.upper()
    if data and method == "GET":
        _die("--data cannot be used with GET", verbose=verbose)

    config_manager = _load_config(ctx)

    body = None
    if data:
        try:
            body = json.loads(data)
        except ValueError as e:
            _die(f"Invalid JSON for --data: {e}", verbose=verbose, exc=e)

    client = _create_client(config_manager, verbose)
    try:
        kwargs = {"json": body} if method != "GET" else {}
        result = client.call(method, endpoint, binary=output is not None, **kwargs)
    except RuntimeError as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)
    finally:
        client.close()

    if output is not None and result.success:
        output.write_bytes(result.data)
        click.echo(f"Wrote {len(result.data)} bytes to {output}")
        return

    click.echo(json.dumps(result.to_dict(), indent=2, default=str))
    if not result.success:
        ctx.exit(1)


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration with secrets masked."""
    config_manager = _load_config(ctx)
    config = config_manager.config
    redactor = RedactingLogger(config.logging)
    click.echo(yaml.safe_dump(redactor.sanitize_data(config.model_dump()), sort_keys=False))


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
