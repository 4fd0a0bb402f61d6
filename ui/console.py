"""Line-oriented request logger for headless deployments."""

from datetime import datetime

from rich.console import Console
from rich.markup import escape

from core.config import Config
from ui.log_utils import write_cli_log, write_forward_log


class ConsoleLogger:
    """Print one line per event instead of a live dashboard."""

    def __init__(self, config: Config, console: Console | None = None):
        self.config = config
        self.console = console or Console()

    def log_proxy(
        self,
        prefix: str,
        method: str,
        path: str,
        target_url: str,
        headers: tuple[tuple[str, str], ...] = (),
    ) -> None:
        self._print(f"[blue]{method}[/blue] {escape(path)} [dim]->[/dim] {escape(target_url)}")
        if self.config.proxy.debug:
            write_forward_log(prefix, method, path, target_url, headers)
        write_cli_log("PROXY", f"{method} {path}", target=target_url)

    def log_redirect(self, prefix: str, location: str, rewritten: str | None) -> None:
        if rewritten is None:
            self._print(f"[magenta]redirect[/magenta] {prefix} external {escape(location)}")
            write_cli_log("REDIRECT", f"Passing through external redirect to {location}", route=prefix)
        else:
            self._print(f"[magenta]redirect[/magenta] {prefix} {escape(location)} [dim]->[/dim] {escape(rewritten)}")
            write_cli_log("REDIRECT", f"Rewriting {location} to {rewritten}", route=prefix)

    def log_error(self, route: str, status: int, message: str) -> None:
        self._print(f"[red]error[/red] {route} {status}: {escape(message[:200])}")
        write_cli_log("ERROR", message[:200], route=route, status=status)

    def log_disconnect(self, prefix: str, path: str) -> None:
        self._print(f"[yellow]disconnect[/yellow] {prefix} {escape(path)}")
        write_cli_log("DISCONNECT", path, route=prefix)

    def _print(self, message: str) -> None:
        self.console.print(f"[dim]{datetime.now():%H:%M:%S}[/dim] {message}", highlight=False)
