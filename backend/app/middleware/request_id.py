"""
Voyage Teams Backend: Request ID Middleware
============================================

What:  Gives every request a correlation id and echoes it back.
How:   Reuses an incoming X-Request-ID header or generates a short UUID,
       stores it in a ContextVar for loggers and exception handlers, and
       sets it on the response.

    Conflict and bad-request bodies carry the same id in `request_id`, so a
    member reporting "my vote was rejected" can be matched to the log line.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
