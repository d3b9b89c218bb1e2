"""CLI: yaml-preview resolve, yaml-preview serve"""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from yaml_preview.policy import build_policy, describe_source, render_surface_html
from yaml_preview.preview import DEMO_PAGE, DEMO_PAGE_LABEL
from yaml_preview.resolver import resolve
from yaml_preview.transport.server import ContentServer, file_reader

console = Console()

# Outside an editor host, bundled pages are addressed as plain files.
FILE_CSP_SOURCE = "file:"


def _load_config():
    from yaml_preview.cli.main import _load_config
    return _load_config()


def _run(coro):
    from yaml_preview.cli.main import _run
    return _run(coro)


@click.command("resolve")
@click.option("--remote-url", default=None, help="Candidate remote address (https only)")
@click.option("--allow-http/--no-allow-http", default=None, help="Permit the loopback server fallback")
@click.option("--html", "show_html", is_flag=True, help="Print the generated surface HTML")
def resolve_cmd(remote_url: Optional[str], allow_http: Optional[bool], show_html: bool):
    """Show which content source a preview would load."""
    cfg = _load_config()
    remote = cfg.remote_url if remote_url is None else remote_url
    allow = cfg.allow_http if allow_http is None else allow_http

    async def _resolve():
        resolution = await resolve(
            remote,
            lambda: ContentServer.start(file_reader(DEMO_PAGE)),
            allow,
            DEMO_PAGE.as_uri(),
        )
        try:
            policy = build_policy(resolution.source, FILE_CSP_SOURCE)
            if show_html:
                mode, detail = describe_source(resolution.source, DEMO_PAGE_LABEL)
                click.echo(render_surface_html(policy, FILE_CSP_SOURCE, mode, detail))
                return
            table = Table(title="Content source")
            table.add_column("Field", style="bold")
            table.add_column("Value")
            table.add_row("Source", resolution.source.kind)
            table.add_row("Frame address", policy.frame_address)
            table.add_row("Isolation origins", " ".join(policy.isolation_origins))
            table.add_row("Message target", policy.message_target_origin)
            console.print(table)
        finally:
            if resolution.server is not None:
                await resolution.server.stop()

    _run(_resolve())


@click.command("serve")
@click.option("--page", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None)
def serve_cmd(page: Optional[Path]):
    """Serve the fallback page over loopback until interrupted."""
    path = page or DEMO_PAGE

    async def _serve():
        server = await ContentServer.start(file_reader(path))
        console.print(f"[green]Serving {path} at {server.address}[/green]")
        console.print("[dim]Press Ctrl+C to stop[/dim]")
        try:
            await asyncio.Event().wait()
        finally:
            await server.stop()

    try:
        _run(_serve())
    except KeyboardInterrupt:
        pass
