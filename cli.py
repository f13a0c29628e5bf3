"""
CLI tool for running and inspecting the signaling relay.

Provides commands for starting the server and for viewing its effective
configuration and registered routes.
"""

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from starlette.routing import Route, WebSocketRoute

from relay.routing import iter_routes
from relay.settings import app_settings

# Initialize Typer app with help text
typer_app = typer.Typer(
    name="relay-cli",
    help="WebSocket Signaling Relay CLI - Run and inspect the relay server",
    add_completion=False,
)
console = Console()


@typer_app.command(name="serve")
def serve(
    host: str = typer.Option(
        None, "--host", help="Bind address (default: HOST setting)"
    ),
    port: int = typer.Option(
        None, "--port", "-p", help="Listen port (default: PORT setting)"
    ),
    reload: bool = typer.Option(
        False, "--reload", help="Restart the server when code changes"
    ),
):
    """
    Start the relay with uvicorn.

    Failing to bind the listening socket is fatal and exits the process.

    Examples:
        python cli.py serve
        python cli.py serve --port 9000
        PORT=9000 python cli.py serve
    """
    uvicorn.run(
        "relay:application",
        factory=True,
        host=host or app_settings.HOST,
        port=port or app_settings.PORT,
        reload=reload,
        log_level=app_settings.LOG_LEVEL.lower(),
    )


@typer_app.command(name="settings")
def show_settings():
    """
    Display the effective configuration, environment overrides applied.

    Example:
        python cli.py settings
    """
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Relay Settings[/bold cyan]",
            border_style="cyan",
        )
    )
    console.print()

    table = Table("Setting", "Value", title="Effective configuration")
    for name, value in app_settings.model_dump().items():
        table.add_row(f"[yellow]{name}[/yellow]", str(value))

    console.print(table)
    console.print()


@typer_app.command(name="routes")
def routes():
    """
    Display the HTTP and WebSocket routes the relay serves.

    Example:
        python cli.py routes
    """
    from relay import application

    console.print()
    table = Table("Type", "Path", "Name", title="Routes", show_lines=True)

    for route in iter_routes(application().routes):
        if isinstance(route, WebSocketRoute):
            table.add_row("[green]WS[/green]", route.path, route.name)
        elif isinstance(route, Route):
            methods = ", ".join(sorted(route.methods or []))
            table.add_row(f"[cyan]{methods}[/cyan]", route.path, route.name)

    console.print(table)
    console.print()


if __name__ == "__main__":
    typer_app()
