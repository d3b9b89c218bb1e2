"""CLI: yaml-preview config show|set"""

import json

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from yaml_preview.config import CONFIG_SECTION, PreviewConfig, load_config_file, save_config_file

console = Console()

KEYS = ("remoteUrl", "debounceMs", "allowHttp")


def _load_config() -> PreviewConfig:
    from yaml_preview.cli.main import _load_config
    return _load_config()


@click.group()
def config():
    """Preview configuration."""


@config.command("show")
@click.option("--json-output", "--json", is_flag=True)
def config_show(json_output):
    """Show the effective configuration."""
    cfg = _load_config()
    if json_output:
        click.echo(json.dumps(cfg.to_settings(), indent=2))
        return
    table = Table(title=CONFIG_SECTION)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in cfg.to_settings().items():
        table.add_row(key, repr(value))
    console.print(table)


@config.command("set")
@click.argument("key", type=click.Choice(KEYS))
@click.argument("value")
def config_set(key, value):
    """Set a configuration value."""
    settings = load_config_file()
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    if key == "remoteUrl":
        parsed = value
    try:
        PreviewConfig.model_validate({**settings, key: parsed})
    except ValidationError:
        raise click.BadParameter(f"invalid value for {key}: {value!r}", param_hint="VALUE")
    try:
        save_config_file({**settings, key: parsed})
    except OSError as e:
        raise click.ClickException(f"could not write config: {e}")
    console.print(f"[green]{key} = {parsed!r}[/green]")
