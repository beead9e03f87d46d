"""Request correlation.

Every request runs under an ``X-Request-ID``.  The id is bound into the
structlog context for the duration of the request, so it reaches every
log line and every event the request publishes (``CeleryEventBus``
forwards it as a task header; see ``config.celery``).
"""

import re
import time
import uuid
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

REQUEST_ID_HEADER = "X-Request-ID"

# Client-supplied ids end up in logs and broker headers.
_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")

logger = structlog.get_logger(__name__)


class CorrelationIdMiddleware:
    """Reads ``X-Request-ID`` or generates a UUID4 when absent or malformed.

    The id is echoed back in the response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        supplied = request.META.get("HTTP_X_REQUEST_ID", "")
        cid = supplied if _VALID_REQUEST_ID.fullmatch(supplied) else str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        with structlog.contextvars.bound_contextvars(correlation_id=cid):
            started = time.monotonic()
            logger.info(
                "request.started",
                method=request.method,
                path=request.get_full_path(),
            )
            response = self.get_response(request)
            logger.info(
                "request.finished",
                method=request.method,
                path=request.get_full_path(),
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - started) * 1000, 2),
            )

        response[REQUEST_ID_HEADER] = cid
        return response
