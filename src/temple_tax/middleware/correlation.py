"""Request ID Middleware.

Every request gets a request id that is:
- Taken from the ``X-Request-ID`` header when the client sends one
- Generated otherwise
- Stored in the logging context so every log line carries it
- Echoed back in the response headers and in error envelopes

Usage:
    from fastapi import FastAPI
    from temple_tax.middleware.correlation import RequestIdMiddleware

    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)
"""

from __future__ import annotations

import uuid
from typing import Any, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from temple_tax.services.logging_config import request_id_var, temple_id_var

REQUEST_ID_HEADER = "X-Request-ID"

# Incoming ids longer than this are replaced rather than trusted.
MAX_REQUEST_ID_LENGTH = 128


def get_request_id() -> Optional[str]:
    """Request id of the current context, or None outside a request."""
    return request_id_var.get()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the request context and the response."""

    def __init__(
        self,
        app,
        header_name: str = REQUEST_ID_HEADER,
        generator: Optional[Callable[[], str]] = None,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.generator = generator or (lambda: str(uuid.uuid4()))

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        request_id = request.headers.get(self.header_name)
        if not request_id or len(request_id) > MAX_REQUEST_ID_LENGTH:
            request_id = self.generator()

        token = request_id_var.set(request_id)
        temple_token = temple_id_var.set(None)
        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.header_name] = request_id
            return response
        finally:
            temple_id_var.reset(temple_token)
            request_id_var.reset(token)
