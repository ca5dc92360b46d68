"""
Request tracing middleware for Burnboard.

n8n workflows send their execution id as ``X-Request-ID`` when they push
snapshots; reusing it lets a webhook log line be matched to the workflow run
that produced it. Browser requests carry no id and get a fresh uuid4.
"""
import re
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("burnboard-api.middleware")

SKIP_LOG_PATHS = {"/health"}

# Inbound ids are echoed into headers and logs, so only short plain tokens are accepted
_INBOUND_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def resolve_request_id(header_value) -> str:
    """The caller's X-Request-ID when it is a plain token, else a new uuid4."""
    if header_value and _INBOUND_REQUEST_ID.match(header_value):
        return header_value
    return str(uuid.uuid4())


def request_id_of(request: Request) -> str:
    """Request id assigned by RequestTimingMiddleware ("-" outside the middleware)."""
    return getattr(request.state, "request_id", "-")


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Sets ``request.state.request_id``, echoes it in X-Request-ID, reports
    the duration in X-Process-Time (ms) and logs one line per request
    except /health.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request.headers.get("X-Request-ID"))
        start_time = time.perf_counter()
        request.state.request_id = request_id

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path not in SKIP_LOG_PATHS:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    "http_method": request.method,
                    "http_path": request.url.path,
                    "http_status": response.status_code,
                    "request_id": request_id,
                    "duration_ms": duration_ms,
                },
            )

        return response
