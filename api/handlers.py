"""FastAPI route handlers."""

from fastapi import Request, Response


async def handle_proxy(request: Request) -> Response:
    """Handle any method on any path: preflight, proxy, or fall back."""
    proxy_service = request.app.state.proxy_service
    return await proxy_service.handle(request)
