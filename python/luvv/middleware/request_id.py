"""X-Request-ID middleware for request correlation and access logging.

- Accepts a well-formed incoming X-Request-ID, otherwise mints a UUID4
- Stores it on request.state and in the logging context
- Echoes it on every response, including errors and CORS preflights
- Emits one http.request.completed entry per request

Must be registered last so it wraps every other middleware.
"""

import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from luvv.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

# Alphanumerics plus dots, hyphens and underscores; UUIDs match too.
VALID_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

logger = get_logger(__name__)


def resolve_request_id(incoming: str | None) -> str:
    """Return the incoming ID when acceptable, else a fresh UUID4.

    UUID-shaped IDs are normalized to lowercase canonical form.
    """
    if not incoming or len(incoming) > MAX_REQUEST_ID_LENGTH:
        return str(uuid.uuid4())
    if not VALID_REQUEST_ID_PATTERN.match(incoming):
        return str(uuid.uuid4())
    try:
        return str(uuid.UUID(incoming))
    except ValueError:
        return incoming


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware for X-Request-ID handling and access logging.

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
                    "http.request.completed",
                    status_code=response.status_code,
                    duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                )

            return response

        except Exception:
            # unhandled_exception_handler renders the 500
            logger.exception("http.request.failed")
            raise

        finally:
            clear_request_context()
