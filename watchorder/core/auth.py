"""Acting-user resolution.

Sessions are handled upstream; whatever authenticates the request forwards
the user id in the configured header. This middleware only records it on
the request state so routes can pass it to the services for ownership
checks. Requests without the header are anonymous and may only read.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from watchorder.core.config import get_settings


class CurrentUserMiddleware(BaseHTTPMiddleware):
    """Middleware that stores the forwarded user id on ``request.state``."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        settings = get_settings()
        user = request.headers.get(settings.user_header, "").strip()
        request.state.user = user or None
        return await call_next(request)


def get_current_user(request: Request) -> str | None:
    """Dependency returning the acting user id, or None for anonymous requests."""
    return getattr(request.state, "user", None)
