"""Custom exception hierarchy for the prefix proxy."""


class ProxyError(Exception):
    """Base exception for all proxy errors."""


class ConfigurationError(ProxyError):
    """Raised when the upstream host list is missing or invalid."""


class NotConfiguredError(ProxyError):
    """Raised when a path matches no configured prefix.

    Attributes:
        path: The inbound request path
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"No proxy target configured for {path!r}")
        self.path = path


class UpstreamError(ProxyError):
    """Raised when forwarding a request to an upstream fails.

    Attributes:
        message: Error message
        prefix: Matched route prefix (e.g., '/d1')
        target_url: Upstream URL the request was sent to (optional)
    """

    def __init__(
        self,
        message: str,
        prefix: str | None = None,
        target_url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.prefix = prefix
        self.target_url = target_url


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream request times out."""


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to an upstream."""
