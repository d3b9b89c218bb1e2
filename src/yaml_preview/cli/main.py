"""
YAML preview CLI: `yaml-preview` command.

Commands:
  yaml-preview resolve           Show which content source a preview would use
  yaml-preview serve             Serve the fallback page on an ephemeral port
  yaml-preview config show|set   Inspect or edit ~/.yaml-preview/config.json
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install yaml-iframe-preview[cli]")

from yaml_preview import __version__
from yaml_preview.config import PreviewConfig, load_config_file

console = Console()


def _load_config() -> PreviewConfig:
    return PreviewConfig.from_settings(load_config_file())


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output")
def main(verbose: bool):
    """YAML preview CLI: live YAML preview tooling."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# Register subcommands from separate modules
from yaml_preview.cli.config import config
from yaml_preview.cli.serve import resolve_cmd, serve_cmd

main.add_command(config)
main.add_command(resolve_cmd)
main.add_command(serve_cmd)


if __name__ == "__main__":
    main()
