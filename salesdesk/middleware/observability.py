from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from salesdesk.core.metrics import request_metrics
from salesdesk.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_context(request_id=request_id)

        status_code = 500
        method = request.method
        response = None

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            endpoint = _route_template(request)
            username = getattr(request.state, "username", None)
            duration_ms = round((time.perf_counter() - start) * 1000, 2)

            set_request_context(username=username)
            request_metrics.observe(endpoint=endpoint, method=method, status_code=status_code, duration_ms=duration_ms)

            logger.info(
                "request completed",
                extra={
                    "request_id": request_id,
                    "username": username,
                    "endpoint": endpoint,
                    "method": method,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                },
            )

            if response is not None:
                response.headers["X-Request-ID"] = request_id

            clear_request_context()


UNMATCHED_ROUTE = "<unmatched>"


def _route_template(request: Request) -> str:
    """Full mounted path with path parameters put back as placeholders.

    Built from the request path rather than the route object, whose
    ``path`` may or may not carry the include prefix depending on the
    framework version. Unrouted requests share one key.
    """
    if request.scope.get("route") is None and request.scope.get("endpoint") is None:
        return UNMATCHED_ROUTE

    segments = request.url.path.split("/")
    for name, value in request.path_params.items():
        text = str(value)
        for index in range(len(segments) - 1, -1, -1):
            if segments[index] == text:
                segments[index] = "{" + name + "}"
                break
    return "/".join(segments)
