"""Client response construction from upstream responses."""

from collections.abc import AsyncIterator

import httpx
from fastapi import Response
from fastapi.responses import StreamingResponse

from core.headers import HeaderBuilder, decode_headers, encode_headers
from core.protocols import RequestLogger
from core.request_types import HeaderPairs, ProxyRequest

TEXT_PLAIN = "text/plain;charset=UTF-8"


class ResponseTransformer:
    """Turn upstream responses into client responses."""

    def __init__(self, header_builder: HeaderBuilder, logger: RequestLogger) -> None:
        self._headers = header_builder
        self._logger = logger

    def transform(
        self,
        upstream: httpx.Response,
        proxy_request: ProxyRequest,
        proxy_origin: str,
    ) -> StreamingResponse:
        """Wrap the upstream body stream with CORS-safe headers.

        Same-origin redirects are pointed back into the proxy namespace,
        redirects to any other origin keep their Location untouched.
        """
        location = None
        if 300 <= upstream.status_code < 400 and "location" in upstream.headers:
            location = self._redirect_location(upstream, proxy_request, proxy_origin)

        headers = self._headers.build_client_headers(decode_headers(upstream.headers.raw), location)
        response = StreamingResponse(_iter_raw(upstream), status_code=upstream.status_code)
        response.raw_headers = encode_headers(headers)
        return response

    def rewrite_location(
        self,
        location: str,
        target_url: str,
        proxy_origin: str,
        prefix: str,
    ) -> str | None:
        """Return the proxy-relative Location, or None if it leaves the upstream."""
        target = httpx.URL(target_url)
        resolved = target.join(location)
        if (resolved.scheme, resolved.host, resolved.port) != (target.scheme, target.host, target.port):
            return None
        return proxy_origin + prefix + resolved.raw_path.decode("ascii")

    def preflight(self) -> Response:
        """Answer a CORS preflight without touching any upstream."""
        response = Response(status_code=204)
        response.raw_headers = encode_headers(self._headers.build_preflight_headers())
        return response

    def _redirect_location(
        self,
        upstream: httpx.Response,
        proxy_request: ProxyRequest,
        proxy_origin: str,
    ) -> str | None:
        location = upstream.headers["location"]
        try:
            rewritten = self.rewrite_location(
                location, proxy_request.target_url, proxy_origin, proxy_request.prefix
            )
        except httpx.InvalidURL:
            rewritten = None
        self._logger.log_redirect(proxy_request.prefix, location, rewritten)
        return rewritten


def text_response(content: str, status_code: int, headers: HeaderPairs = ()) -> Response:
    """Plain-text response with an explicit UTF-8 content type."""
    body = content.encode("utf-8")
    response = Response(content=body, status_code=status_code)
    response.raw_headers = encode_headers(
        (("content-length", str(len(body))), ("content-type", TEXT_PLAIN), *headers)
    )
    return response


async def _iter_raw(upstream: httpx.Response) -> AsyncIterator[bytes]:
    """Yield upstream bytes undecoded, closing the upstream when done or cancelled."""
    try:
        async for chunk in upstream.aiter_raw():
            yield chunk
    finally:
        await upstream.aclose()
