"""
Tutorium Backend — Request ID Middleware
==========================================

What:  Gives every request a correlation id and echoes it back in the
       X-Request-ID response header.
How:   A client-supplied X-Request-ID is reused (so the browser can report
       it); otherwise a short UUID is generated. The id lives in a
       ContextVar so loggers and exception handlers can read it without
       access to the request object.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 characters are plenty for correlating log lines
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
