# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request context middleware.

Assigns every request an id and binds it to the logging context, so log
lines written while handling the request carry request_id. The id is taken
from the X-Request-Id header when the gateway sends one and echoed back on
the response.

Example:
    GET /api/v1/sections
    X-Request-Id: 2f1c...

    -> log lines: request_id=2f1c... method=GET path=/api/v1/sections
"""

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request-scoped logging context."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        """Process the request with a bound request id.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler.

        Returns:
            HTTP response.
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        clear_context()
        bind_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.debug("Request handled in %.1f ms", duration_ms)
            clear_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
