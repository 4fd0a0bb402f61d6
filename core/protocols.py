"""Shared protocol definitions."""

from typing import Protocol

from starlette.requests import Request


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard, ConsoleLogger)."""

    def log_proxy(
        self,
        prefix: str,
        method: str,
        path: str,
        target_url: str,
        headers: tuple[tuple[str, str], ...] = (),
    ) -> None: ...
    def log_redirect(self, prefix: str, location: str, rewritten: str | None) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
    def log_disconnect(self, prefix: str, path: str) -> None: ...


class ClientIpResolver(Protocol):
    """Trusted source of the client's IP address for X-Forwarded-For."""

    def resolve(self, request: Request) -> str: ...
