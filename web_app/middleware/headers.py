"""Client metadata middleware."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

from shortlinks.common.headers import get_client_ip, get_user_agent


class ForwardedHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to resolve the client address and user agent of a request."""

    async def dispatch(self, request: Request, call_next: Callable):
        """Store client IP (X-Forwarded-For aware) and user agent in request state."""
        peer_host = request.client.host if request.client else None
        request.state.client_ip = get_client_ip(request.headers, peer_host)
        request.state.client_browser = get_user_agent(request.headers)

        response = await call_next(request)
        return response
