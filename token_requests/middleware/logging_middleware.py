"""
HTTP request logging middleware.

Each read is logged together with the store position it was served from, so
a client report can be matched to the events applied at that moment.
"""

import time
import uuid
from typing import Any, Dict

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..state.store import get_state_store

logger = structlog.stdlib.get_logger("http")

APPLIED_EVENTS_HEADER = "x-applied-events"


def _store_position() -> Dict[str, Any]:
    store = get_state_store()
    if store is None:
        return {}
    return {
        "applied_events": store.applied_events,
        "is_syncing": store.state.is_syncing,
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log reads with timing, status and the store position served."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        status_code = 500
        position: Dict[str, Any] = {}

        try:
            response = await call_next(request)
            status_code = response.status_code
            position = _store_position()
            response.headers["x-request-id"] = request_id
            if "applied_events" in position:
                response.headers[APPLIED_EVENTS_HEADER] = str(position["applied_events"])
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            else:
                log = logger.info

            log(
                "state_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration_ms=duration_ms,
                **position,
            )
