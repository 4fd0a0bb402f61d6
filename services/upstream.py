"""HTTP forwarding to upstream hosts."""

import httpx

from core.exceptions import UpstreamConnectionError, UpstreamError, UpstreamTimeoutError
from core.headers import encode_headers
from core.request_types import ProxyRequest


class UpstreamClient:
    """Forward prepared requests upstream with streaming bodies.

    Requests are sent exactly once; redirects are returned, never followed.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def forward(self, proxy_request: ProxyRequest) -> httpx.Response:
        """Send the request and return the streamed upstream response.

        Raises:
            UpstreamTimeoutError: The upstream did not answer in time.
            UpstreamConnectionError: The upstream could not be reached.
            UpstreamError: Any other transport failure or an invalid target URL.
        """
        prefix = proxy_request.prefix
        target_url = proxy_request.target_url
        try:
            # Built directly so the client's default headers are not merged in
            request = httpx.Request(
                proxy_request.method,
                target_url,
                headers=encode_headers(proxy_request.headers),
                content=proxy_request.body,
                extensions={"timeout": self._client.timeout.as_dict()},
            )
            return await self._client.send(request, stream=True, follow_redirects=False)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Upstream timeout: {e!r}", prefix, target_url) from e
        except httpx.ConnectError as e:
            raise UpstreamConnectionError(
                f"Upstream connection error: {e!r}", prefix, target_url
            ) from e
        except httpx.InvalidURL as e:
            raise UpstreamError(f"Invalid target URL: {e}", prefix, target_url) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Upstream request failed: {e!r}", prefix, target_url) from e
