"""MCP server commands."""

from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from datocms_mcp.config import ServerConfig
from datocms_mcp.log import configure_logging, stderr_console
from datocms_mcp.server import DatoCMSMCPServer
from datocms_mcp.tools import PARAMETERS_TOOL, TOOL_GROUPS

app = typer.Typer(help="DatoCMS MCP server")
console = Console()


def _load_config(config_dir: Optional[Path], use_config_file: bool) -> ServerConfig:
    if use_config_file:
        return ServerConfig.load(config_dir)
    return ServerConfig()


@app.command()
def serve(
    host: str = typer.Option(None, help="Server host (sse/http only, overrides config)"),
    port: int = typer.Option(None, help="Server port (sse/http only, overrides config)"),
    transport: str = typer.Option(None, help="Transport: stdio, sse or http (overrides config)"),
    debug: bool = typer.Option(None, help="Log timing for every tool call (overrides config)"),
    config_dir: Path = typer.Option(None, help="Directory holding datocms-mcp.yaml (default: cwd)"),
    config_file: bool = typer.Option(True, help="Load from datocms-mcp.yaml"),
):
    """
    Start the MCP server.

    Configuration is loaded from datocms-mcp.yaml if it exists, then
    DATOCMS_MCP_* environment variables, then command-line options.

    Examples:
        # Start with stdio transport (uses config or defaults)
        datocms-mcp serve

        # Start with streamable HTTP transport
        datocms-mcp serve --transport http --host 0.0.0.0 --port 8000
    """
    try:
        config = _load_config(config_dir, config_file)

        overrides = {
            "host": host,
            "port": port,
            "transport": transport,
            "debug": debug,
        }
        config = replace(config, **{key: value for key, value in overrides.items() if value is not None})

        configure_logging(config.effective_log_level)
        server = DatoCMSMCPServer.from_config(config)

        stderr_console.print("[green]Starting DatoCMS MCP server...[/green]")
        stderr_console.print(f"Transport: {config.transport}")
        if config.transport != "stdio":
            stderr_console.print(f"Listening on {config.host}:{config.port}")
        stderr_console.print(f"Tools: {len(server.routers) + 1}")

        server.start()
    except ValueError as e:
        stderr_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)
    except RuntimeError as e:
        stderr_console.print(f"[red]Error starting server:[/red] {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        stderr_console.print("\n[yellow]Server stopped by user[/yellow]")
        raise typer.Exit(0)


@app.command()
def tools(
    actions: bool = typer.Option(False, "--actions", help="List the actions of every tool"),
):
    """
    List the MCP tools the server exposes.

    Examples:
        datocms-mcp tools
        datocms-mcp tools --actions
    """
    table = Table(title="DatoCMS MCP Tools")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Actions", justify="right")
    if actions:
        table.add_column("Action names")

    for group in TOOL_GROUPS:
        row = [group.name, str(len(group.actions))]
        if actions:
            row.append(", ".join(group.actions))
        table.add_row(*row)

    parameters_row = [PARAMETERS_TOOL, "-"]
    if actions:
        parameters_row.append("")
    table.add_row(*parameters_row)

    console.print(table)


@app.command()
def config(
    config_dir: Path = typer.Option(None, help="Directory holding datocms-mcp.yaml (default: cwd)"),
    write: bool = typer.Option(False, "--write", help="Write the effective configuration to datocms-mcp.yaml"),
):
    """
    Show the effective configuration.

    Values come from datocms-mcp.yaml overridden by DATOCMS_MCP_* variables.

    Examples:
        datocms-mcp config
        DATOCMS_MCP_TRANSPORT=http datocms-mcp config --write
    """
    try:
        server_config = ServerConfig.load(config_dir)
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="DatoCMS MCP Configuration", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    for key, value in server_config.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)

    if write:
        path = server_config.save(config_dir)
        console.print(f"[green]Configuration written to {path}[/green]")
