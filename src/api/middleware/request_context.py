# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request context middleware.

Binds a request id and the acting user to the logging context for the
duration of a request, so ledger and lifecycle log lines can be traced
back to the call that produced them.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
ACTOR_HEADER = "X-Actor-Name"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach request id and actor to every log record of a request.

    An incoming X-Request-ID header is reused; otherwise a new id is
    generated. The id is echoed back on the response.

    Example:
        >>> app.add_middleware(RequestContextMiddleware)
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        """Bind context, process the request and log its outcome.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler.

        Returns:
            HTTP response with the request id header set.
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        clear_context()
        bind_context(
            request_id=request_id,
            actor=request.headers.get(ACTOR_HEADER, "System"),
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug("Request handled in %.1fms", elapsed_ms)
            clear_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
