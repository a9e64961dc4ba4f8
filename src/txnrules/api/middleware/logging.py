"""Request logging middleware.

Each request is logged once when it starts and once when it finishes, tagged
with a request ID. An ``X-Request-ID`` sent by the gateway is reused so a rule
trigger can be traced across services; otherwise a new one is generated. The
authenticated user is only known after routing, so it is read from
``request.state.user_id`` (set by ``get_current_user``) on the way out.
"""

import logging
import re
import time
import uuid
from typing import Any, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from txnrules.core.logging import filter_pii

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(request: Request) -> str:
    """Reuse a well-formed inbound request ID, else generate one."""
    inbound = request.headers.get(REQUEST_ID_HEADER)
    if inbound and _VALID_REQUEST_ID.match(inbound):
        return inbound
    return str(uuid.uuid4())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all HTTP requests with PII filtering."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request)
        request.state.request_id = request_id
        start = time.perf_counter()
        context: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": filter_pii(request.url.path),
        }

        logger.info(
            "Request started",
            extra={**context, "client_ip": request.client.host if request.client else None},
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed",
                extra={
                    **context,
                    "user_id": _user_id(request),
                    "duration_ms": _elapsed_ms(start),
                    "error_type": type(exc).__name__,
                },
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "Request completed",
            extra={
                **context,
                "user_id": _user_id(request),
                "status_code": response.status_code,
                "duration_ms": _elapsed_ms(start),
            },
        )
        return response


def _user_id(request: Request) -> str | None:
    user_id = getattr(request.state, "user_id", None)
    return str(user_id) if user_id is not None else None


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
