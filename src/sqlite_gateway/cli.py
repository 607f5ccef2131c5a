"""Command-line interface for the SQLite query gateway."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .core import GatewaySystem
from .database import DatabaseConnectionConfig, DatabaseHandler
from .exceptions import GatewayError
from .gateway import QueryGateway
from .models import OutputFormat, QueryRequest
from .utils.config import MCP_TRANSPORTS, ConfigManager, setup_logging
from .version import __version__


# stdout carries MCP traffic in stdio mode, so the CLI reports on stderr
console = Console(stderr=True)
out = Console(highlight=False, soft_wrap=True, emoji=False)

app = typer.Typer(
    name="sqlite-gateway",
    help="Expose a SQLite database through MCP tools and an HTTP query endpoint",
    add_completion=False
)


@app.command()
def serve(
    database: str = typer.Argument(..., help="Path to the SQLite database file"),
    transport: Optional[str] = typer.Option(None, "--transport", "-t", help="MCP transport: stdio or http"),
    host: Optional[str] = typer.Option(None, "--host", "-h", help="HTTP data server host"),
    http_port: Optional[int] = typer.Option(None, "--http-port", "-p", help="HTTP data server port"),
    mcp_port: Optional[int] = typer.Option(None, "--mcp-port", help="MCP server port (http transport)"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file")
):
    """Start the MCP server and the HTTP data server."""
    config = ConfigManager(config_path)
    config.set("database.url", database)
    if transport:
        config.set("mcp.transport", transport)
    if host:
        config.set("http.host", host)
    if http_port:
        config.set("http.port", http_port)
    if mcp_port:
        config.set("mcp.port", mcp_port)

    setup_logging(config.get("logging.level", "INFO"))

    if not config.is_valid():
        console.print(f"[red]Invalid configuration. Transport must be one of: {', '.join(MCP_TRANSPORTS)}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Serving {database} (MCP over {config.get('mcp.transport')}, "
                  f"HTTP on {config.get('http.host')}:{config.get('http.port')})[/green]")

    try:
        GatewaySystem(config=config).run_server()
    except KeyboardInterrupt:
        console.print("[yellow]Server stopped by user[/yellow]")
    except Exception as e:
        console.print(f"[red]Error starting server: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def query(
    database: str = typer.Argument(..., help="Path to the SQLite database file"),
    sql: str = typer.Argument(..., help="SQL statement to run"),
    read_only: bool = typer.Option(False, "--read-only", "-r", help="Only allow SELECT statements"),
    output: str = typer.Option("table", "--format", "-f", help="Output format: table, csv or json")
):
    """Run a single statement through the gateway."""
    asyncio.run(_query_command(database, sql, read_only, output))


@app.command()
def tables(
    database: str = typer.Argument(..., help="Path to the SQLite database file")
):
    """List tables and views."""
    asyncio.run(_tables_command(database))


@app.command()
def config(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration file")
):
    """Show configuration information."""
    _config_command(config_path)


@app.command()
def version():
    """Show version information."""
    out.print(f"SQLite Query Gateway version {__version__}")


def _open_gateway(database: str) -> QueryGateway:
    return QueryGateway(DatabaseHandler(DatabaseConnectionConfig(url=database)))


async def _query_command(database: str, sql: str, read_only: bool, output: str):
    """Execute a single query command."""
    gateway = _open_gateway(database)
    try:
        result = await gateway.run(QueryRequest(text=sql, read_only=read_only))
    except GatewayError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)
    finally:
        await gateway.close()

    if output.lower() == "table":
        out.print(gateway.formatter.format_table(result.rows), markup=False)
        console.print(f"[dim]{result.row_count} rows in {result.execution_time * 1000:.0f}ms[/dim]")
    else:
        body, _ = gateway.render(result.rows, OutputFormat.parse(output))
        out.print(body, end="", markup=False)


async def _tables_command(database: str):
    """Show tables and views."""
    gateway = _open_gateway(database)
    try:
        rows = await gateway.list_tables()
    except GatewayError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)
    finally:
        await gateway.close()

    if not rows:
        console.print("[yellow]No tables or views found[/yellow]")
        return

    table = Table(title=f"Tables in {database}")
    table.add_column("Name", style="cyan")
    for row in rows:
        table.add_row(row["name"])
    out.print(table)


def _config_command(config_path: Optional[str]):
    """Show configuration information."""
    config = ConfigManager(config_path)
    settings = config.get_all()

    out.print("[green]Configuration:[/green]")
    out.print(f"[blue]Database:[/blue] {settings['database'].get('url') or 'Not configured'}")

    http = settings["http"]
    out.print("[blue]HTTP data server:[/blue]")
    out.print(f"  Host: {http.get('host')}")
    out.print(f"  Port: {http.get('port')}")
    out.print(f"  Public URL: {config.get_public_url()}")

    mcp = settings["mcp"]
    out.print("[blue]MCP server:[/blue]")
    out.print(f"  Transport: {mcp.get('transport')}")
    if mcp.get("transport") == "http":
        out.print(f"  Host: {mcp.get('host')}")
        out.print(f"  Port: {mcp.get('port')}")

    out.print(f"[blue]Default row limit:[/blue] {settings['query'].get('default_limit')}")

    status = "[green]Valid[/green]" if config.is_valid() else "[red]Invalid[/red]"
    out.print(f"Configuration Status: {status}")


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
