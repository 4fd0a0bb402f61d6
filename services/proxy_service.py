"""Per-request proxy pipeline: preflight, routing, forwarding, transformation."""

from fastapi import Request, Response
from starlette.requests import ClientDisconnect

from core.exceptions import NotConfiguredError, UpstreamError
from core.headers import HeaderBuilder, decode_headers
from core.protocols import ClientIpResolver, RequestLogger
from core.request_types import ProxyRequest
from core.router import MatchResult, RouteTable
from core.transform import ResponseTransformer, text_response
from services.upstream import UpstreamClient

WELCOME_TEXT = "Welcome to the AI Proxy service."
NOT_CONFIGURED_TEXT = "Proxy target not configured for this path."
UPSTREAM_FAILED_TEXT = "Proxy request failed."


class ProxyService:
    """Route inbound requests to their upstream and build client responses."""

    def __init__(
        self,
        route_table: RouteTable,
        upstream: UpstreamClient,
        logger: RequestLogger,
        client_ip: ClientIpResolver,
        header_builder: HeaderBuilder | None = None,
        transformer: ResponseTransformer | None = None,
    ) -> None:
        self._routes = route_table
        self._upstream = upstream
        self._logger = logger
        self._client_ip = client_ip
        self._headers = header_builder or HeaderBuilder()
        self._transformer = transformer or ResponseTransformer(self._headers, logger)

    async def handle(self, request: Request) -> Response:
        """Produce the client response for a single inbound request."""
        if request.method == "OPTIONS":
            return self._transformer.preflight()

        path = _raw_path(request)
        try:
            match = self._route(path)
        except NotConfiguredError:
            if path == "/":
                return text_response(WELCOME_TEXT, 200)
            return text_response(NOT_CONFIGURED_TEXT, 404)

        proxy_request = self.prepare(request, match, path)
        self._logger.log_proxy(
            match.matched_prefix,
            request.method,
            path,
            proxy_request.target_url,
            proxy_request.headers,
        )

        try:
            upstream = await self._upstream.forward(proxy_request)
        except UpstreamError as e:
            self._logger.log_error(match.matched_prefix, 502, str(e))
            return text_response(
                UPSTREAM_FAILED_TEXT, 502, (("access-control-allow-origin", "*"),)
            )
        except ClientDisconnect:
            self._logger.log_disconnect(match.matched_prefix, path)
            return Response(status_code=499)

        return self._transformer.transform(upstream, proxy_request, _origin(request))

    def prepare(self, request: Request, match: MatchResult, path: str) -> ProxyRequest:
        """Build the outbound request for a matched inbound request."""
        target_url = match.upstream_base_url + path[len(match.matched_prefix):]
        query = request.url.query
        if query:
            target_url += "?" + query

        headers = self._headers.build_upstream_headers(
            decode_headers(request.headers.raw),
            upstream_host=match.upstream_base_url.split("://", 1)[1],
            client_ip=self._client_ip.resolve(request),
            forwarded_host=request.headers.get("host", request.url.netloc),
            forwarded_proto=request.url.scheme,
        )
        body = request.stream() if _has_body(request) else None
        return ProxyRequest(request.method, target_url, headers, body, match)

    def _route(self, path: str) -> MatchResult:
        match = self._routes.match(path)
        if match is None:
            raise NotConfiguredError(path)
        return match


def _raw_path(request: Request) -> str:
    """Path as sent by the client, still percent-encoded."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1").split("?", 1)[0]
    return request.url.path


def _origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def _has_body(request: Request) -> bool:
    return "content-length" in request.headers or "transfer-encoding" in request.headers
