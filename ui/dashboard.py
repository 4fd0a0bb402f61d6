"""Real-time CLI dashboard for proxy monitoring."""

from collections import Counter
from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log, write_forward_log

console = Console()


class RequestInfo:
    """Info about a single proxied request."""

    def __init__(self, prefix: str, method: str, path: str, target: str, timestamp: datetime):
        self.prefix = prefix
        self.method = method
        self.path = path[:60] + "..." if len(path) > 60 else path
        self.target = target
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing traffic per upstream prefix."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._recent: list[RequestInfo] = []
        self._max_recent = 10
        self._request_count: Counter[str] = Counter()
        self._redirects = {"rewritten": 0, "external": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_proxy(
        self,
        prefix: str,
        method: str,
        path: str,
        target_url: str,
        headers: tuple[tuple[str, str], ...] = (),
    ) -> None:
        """Log a request forwarded to an upstream."""
        with self._lock:
            self._request_count[prefix] += 1
            self._recent.insert(0, RequestInfo(prefix, method, path, target_url, datetime.now()))
            self._recent = self._recent[: self._max_recent]
            self._refresh()

            if self.config.proxy.debug:
                write_forward_log(prefix, method, path, target_url, headers)
            write_cli_log("PROXY", f"{method} {path}", target=target_url)

    def log_redirect(self, prefix: str, location: str, rewritten: str | None) -> None:
        """Log an upstream redirect, rewritten or passed through."""
        with self._lock:
            if rewritten is None:
                self._redirects["external"] += 1
                write_cli_log("REDIRECT", f"Passing through external redirect to {location}", route=prefix)
            else:
                self._redirects["rewritten"] += 1
                write_cli_log("REDIRECT", f"Rewriting {location} to {rewritten}", route=prefix)
            self._refresh()

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def log_disconnect(self, prefix: str, path: str) -> None:
        """Log a client that went away before the upstream answered."""
        write_cli_log("DISCONNECT", path, route=prefix)

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["body"].split_row(
            Layout(name="routes", ratio=1),
            Layout(name="recent", ratio=3),
        )

        layout["header"].update(self._build_header())
        layout["routes"].update(self._build_routes_panel())
        layout["recent"].update(self._build_recent_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Prefix Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Requests: {sum(self._request_count.values())}", style="blue")
        stats.append("  |  ")
        stats.append(
            f"Redirects: {self._redirects['rewritten']} rewritten, "
            f"{self._redirects['external']} external",
            style="magenta",
        )
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_routes_panel(self) -> Panel:
        """Build per-prefix request counters."""
        if self._request_count:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Prefix")
            table.add_column("Requests", justify="right")
            for prefix, count in self._request_count.most_common(12):
                table.add_row(prefix, str(count))
            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Upstreams[/blue]", border_style="blue")

    def _build_recent_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Path", ratio=1)
            table.add_column("Target", ratio=2)

            for info in self._recent:
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    Text(info.path),
                    Text(info.target),
                )

            content = table
        else:
            content = Text("No proxied requests yet...", style="dim")

        return Panel(content, title="[magenta]Recent[/magenta]", border_style="magenta")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Send requests to http://{self.config.proxy.host}:{self.config.proxy.port}/<prefix>/...",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
