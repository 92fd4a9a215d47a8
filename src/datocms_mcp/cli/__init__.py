"""Command line interface for the DatoCMS MCP server."""

import typer

from datocms_mcp import __version__

from .commands.server import app


def _version_callback(value: bool):
    if value:
        typer.echo(f"datocms-mcp {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
):
    """DatoCMS MCP server."""


def main():
    app()


__all__ = ["app", "main"]
