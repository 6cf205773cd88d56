"""Access log and request correlation.

Every request gets a request id: the caller's X-Request-ID when it is a short
token of letters, digits and `_.-`, otherwise a fresh `req_<12 hex>`. The id lands on
request.state for the envelope and is echoed back in the X-Request-ID response header.

Log lines (logger "pd.request"):
    INFO    POST /payment 200 41ms ip=10.0.0.7 req_a1b2c3d4e5f6
    WARNING POST /payment 500 12ms ip=10.0.0.7 req_a1b2c3d4e5f6
    ERROR   POST /payment raised after 12ms ip=10.0.0.7 req_a1b2c3d4e5f6
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.pd_gateway.middleware.rate_limit import client_ip

logger = logging.getLogger("pd.request")

REQUEST_ID_HEADER = "X-Request-ID"
_INBOUND_ID = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


def resolve_request_id(request: Request) -> str:
    inbound = request.headers.get(REQUEST_ID_HEADER)
    if inbound and _INBOUND_ID.match(inbound):
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request)
        request.state.request_id = request_id
        ip = client_ip(request)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "%s %s raised after %.0fms ip=%s %s",
                request.method,
                request.url.path,
                (time.perf_counter() - start) * 1000,
                ip,
                request_id,
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.log(
            logging.WARNING if response.status_code >= 500 else logging.INFO,
            "%s %s %d %.0fms ip=%s %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            ip,
            request_id,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
