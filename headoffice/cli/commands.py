"""
CLI commands for the Head Office Locator.
"""

import functools
import json
import sys
from typing import Optional, Tuple

import click
import yaml

from headoffice.cache.store import ExpiringCache, JsonFileStore
from headoffice.core.config import Config, DEFAULTS, PROVIDERS, ServerSettings
from headoffice.core.exceptions import LocatorError
from headoffice.proxy.server import run_server
from headoffice.ui.capabilities import LinkMapWidget
from headoffice.ui.controller import LocatorApp
from headoffice.ui.renderer import ResultRenderer
from headoffice.utils.logging_config import get_logger, setup_logging


def _load_config(config_path: Optional[str], provider: Optional[str] = None) -> Config:
    overrides = {"REGISTRY_PROVIDER": provider} if provider else None
    return Config(config_path, overrides=overrides)


@click.command()
@click.argument('name', nargs=-1)
@click.option('--config', '-c', 'config_path', type=click.Path(),
              help='Path to a KEY=VALUE configuration file (default: .env.local or env.local)')
@click.option('--provider', '-p', type=click.Choice(PROVIDERS),
              help='Registry provider, overriding REGISTRY_PROVIDER')
@click.option('--json', 'as_json', is_flag=True,
              help='Print the record as JSON on stdout (the rendered view goes to stderr)')
@click.option('--voice', is_flag=True,
              help='Capture the company name by voice instead')
@click.option('--verbose', '-v', is_flag=True,
              help='Enable verbose output')
def search(name: Tuple[str, ...], config_path: Optional[str], provider: Optional[str],
           as_json: bool, voice: bool, verbose: bool):
    """Look up a company's head office and territory signals."""
    try:
        config = _load_config(config_path, provider)
        config.validate()
    except LocatorError as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        sys.exit(1)

    logging_config = dict(config.logging_config)
    if verbose:
        logging_config['level'] = 'DEBUG'
    setup_logging(logging_config)

    # Keep stdout machine-readable when JSON is requested
    echo = functools.partial(click.echo, err=True) if as_json else click.echo
    renderer = ResultRenderer(map_widget=LinkMapWidget(config.tile_url, echo=echo), echo=echo)
    app = LocatorApp.from_config(config, renderer=renderer)

    if voice:
        record = app.toggle_listening()
    else:
        record = app.search(" ".join(name))

    if record is None:
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))


@click.command()
@click.option('--host', default='127.0.0.1', show_default=True,
              help='Interface to bind')
@click.option('--port', type=int,
              help='Port to listen on (default: $PORT or 8788)')
def serve(host: str, port: Optional[int]):
    """Run the same-origin proxy server."""
    try:
        settings = ServerSettings.from_env()
    except LocatorError as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging({'level': 'INFO', 'file': None})
    if not settings.abr_guid:
        get_logger('proxy').warning("ABR_GUID is not set; /api/search will answer 500")
    run_server(settings, host=host, port=port)


@click.group()
def config_commands():
    """Configuration management commands."""
    pass


@config_commands.command('show')
@click.option('--config', '-c', 'config_path', type=click.Path(),
              help='Path to a KEY=VALUE configuration file')
def config_show(config_path: Optional[str]):
    """Show current configuration."""
    try:
        config = _load_config(config_path)
    except LocatorError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    click.echo(f"Current Configuration ({config.source or 'built-in defaults'}):")
    click.echo(yaml.safe_dump(config.get_all(), default_flow_style=False, sort_keys=False))


@config_commands.command('validate')
@click.option('--config', '-c', 'config_path', type=click.Path(),
              help='Path to a KEY=VALUE configuration file')
def config_validate(config_path: Optional[str]):
    """Validate configuration file."""
    try:
        _load_config(config_path).validate()
    except LocatorError as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(1)
    click.echo("✅ Configuration is valid")


@config_commands.command('example')
def config_example():
    """Show example configuration."""
    click.echo("# Example .env.local")
    for key, value in DEFAULTS.items():
        click.echo(f"{key}={value}")
    click.echo("\nTo use this configuration:")
    click.echo("1. Save to .env.local")
    click.echo("2. Set ABR_GUID or OPENCORPORATES_API_TOKEN for your provider")
    click.echo("3. Adjust TERRITORY_KEYWORD to your sales territory")


@click.group()
def cache():
    """Manage the local lookup cache."""
    pass


@cache.command('clear')
@click.option('--config', '-c', 'config_path', type=click.Path(),
              help='Path to a KEY=VALUE configuration file')
def cache_clear(config_path: Optional[str]):
    """Remove every cached lookup."""
    try:
        config = _load_config(config_path)
    except LocatorError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if not config.cache_file:
        click.echo("Cache is memory-only; nothing to clear")
        return
    ExpiringCache(JsonFileStore(config.cache_file)).clear()
    click.echo(f"Cleared cache {config.cache_file}")
