"""FastAPI middleware for cross-cutting concerns."""

from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from material_cost_engine.logging_config import correlation_scope

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Binds a correlation ID to every request.

    The incoming ``X-Correlation-ID`` header is reused when present,
    otherwise a UUID4 is generated. The ID is visible to every log statement
    made while the request is handled and is echoed in the response header.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        with correlation_scope(request.headers.get(CORRELATION_HEADER)) as correlation_id:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
