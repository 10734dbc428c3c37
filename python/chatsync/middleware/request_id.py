"""X-Request-ID middleware.

Every request gets an id: a well-formed incoming X-Request-ID header is
reused (UUIDs lowercased), anything else is replaced by a fresh UUID4.
The id, path and method are bound to the logging context for the
duration of the request, echoed in the response header and included in
error envelopes. One access log line is emitted per request.

Registered last so it wraps every other middleware.
"""

import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from chatsync.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

logger = get_logger(__name__)


def resolve_request_id(header_value: str | None) -> str:
    """Return the id to use for a request given its X-Request-ID header."""
    if header_value and len(header_value.encode("utf-8")) <= MAX_REQUEST_ID_LENGTH:
        if _UUID_PATTERN.match(header_value):
            return header_value.lower()
        if _TOKEN_PATTERN.match(header_value):
            return header_value
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns request ids and writes the access log.

    Args:
        app: The ASGI application.
        log_requests: If True, log one access entry per request.
    """

    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.monotonic()
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(request_id, path=request.url.path, method=request.method)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            if self.log_requests:
                logger.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                )
            return response

        except Exception:
            logger.exception("request_failed")
            raise

        finally:
            clear_request_context()
