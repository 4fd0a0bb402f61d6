"""CLI entry point for prefix-proxy."""

import sys
from datetime import datetime

from rich.console import Console
from rich.table import Table

from app import create_app
from core.config import CONFIG_FILE, load_config
from core.exceptions import ConfigurationError
from core.hosts import UPSTREAM_HOSTS
from core.router import RouteTable, build_route_table
from ui.console import ConsoleLogger
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()

    # Route table is validated before anything else so a bad host list never serves
    try:
        route_table = build_route_table(UPSTREAM_HOSTS)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    plain = False
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--routes":
            _print_routes(route_table)
            return

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        if arg == "--plain":
            plain = True
        else:
            console.print(f"[red][ERROR][/red] Unknown argument: {arg}")
            _print_help()
            sys.exit(2)

    clear_logs()
    if plain or not config.proxy.dashboard:
        logger = ConsoleLogger(config, console)
        dashboard = None
    else:
        logger = dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, logger, route_table)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    if dashboard:
        dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port, routes=len(route_table))
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        if dashboard:
            dashboard.stop()


def _print_routes(route_table: RouteTable):
    """Print the configured prefix -> upstream mapping."""
    table = Table(title="Routes", header_style="bold")
    table.add_column("Prefix", style="cyan")
    table.add_column("Upstream")
    for entry in sorted(route_table, key=lambda e: e.prefix):
        table.add_row(entry.prefix, entry.upstream_base_url)
    console.print(table)


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Prefix Proxy[/bold cyan]

Forwards /<prefix>/... to the upstream configured for that prefix.

[bold]Usage:[/bold]
    prefix-proxy              Start with live dashboard
    prefix-proxy --plain      Start with line-by-line console output
    prefix-proxy --routes     Show the route table
    prefix-proxy --config     Show config location
    prefix-proxy --help       Show this help
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
