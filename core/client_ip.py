"""Client IP resolution for forwarded requests."""

from starlette.requests import Request

from core.config import ClientIpSettings


class ConnectionClientIpResolver:
    """Resolve the client IP from the connection, then a trusted header.

    Falls back to an empty string when neither source is available.
    """

    def __init__(
        self,
        fallback_header: str | None = "x-nf-client-connection-ip",
        trust_connection: bool = True,
    ) -> None:
        self._fallback_header = fallback_header
        self._trust_connection = trust_connection

    @classmethod
    def from_settings(cls, settings: ClientIpSettings) -> "ConnectionClientIpResolver":
        return cls(settings.fallback_header or None, settings.trust_connection)

    def resolve(self, request: Request) -> str:
        if self._trust_connection and request.client and request.client.host:
            return request.client.host
        if self._fallback_header:
            return request.headers.get(self._fallback_header, "")
        return ""
