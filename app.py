"""FastAPI application factory."""

from contextlib import asynccontextmanager
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx
from fastapi import FastAPI

from api.handlers import handle_proxy
from core.client_ip import ConnectionClientIpResolver
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import ClientIpResolver, RequestLogger
from core.router import RouteTable
from core.transform import ResponseTransformer
from services.proxy_service import ProxyService
from services.upstream import UpstreamClient


def create_app(
    config: Config,
    logger: RequestLogger,
    route_table: RouteTable,
    client_ip: ClientIpResolver | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The route table is built by the caller and shared read-only by all requests.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.upstream.max_connections,
            max_keepalive_connections=config.upstream.max_keepalive_connections,
        )
        upstream_client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                config.upstream.timeout,
                connect=config.upstream.connect_timeout,
            ),
            limits=limits,
            follow_redirects=False,
            # Set-Cookie belongs to the downstream client, never to the shared pool
            cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
            transport=transport,
        )
        header_builder = HeaderBuilder()
        app.state.proxy_service = ProxyService(
            route_table=route_table,
            upstream=UpstreamClient(upstream_client),
            logger=logger,
            client_ip=client_ip or ConnectionClientIpResolver.from_settings(config.client_ip),
            header_builder=header_builder,
            transformer=ResponseTransformer(header_builder, logger),
        )
        try:
            yield
        finally:
            await upstream_client.aclose()

    app = FastAPI(
        title="Prefix Proxy",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # Plain Starlette route with no method list, so every method reaches the service
    app.add_route("/{path:path}", handle_proxy, methods=None, include_in_schema=False)

    return app
