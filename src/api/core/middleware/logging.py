import time
import uuid

import structlog
from fastapi import Request

from src.api.core.constants import REQUEST_ID_HEADER
from src.utils.logger import get_client_ip, get_logger

logger = get_logger(__name__)

UNLOGGED_PATH_PREFIXES = ("/health",)


async def logging_middleware(request: Request, call_next):
    """One access log line per request, with a request id bound for every
    event emitted while it is handled."""
    if request.url.path.startswith(UNLOGGED_PATH_PREFIXES):
        return await call_next(request)

    started = time.perf_counter()
    structlog.contextvars.clear_contextvars()
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(
        ip_address=get_client_ip(request),
        method=request.method,
        path=request.url.path,
        request_id=request_id,
    )

    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id

    log = logger.warning if response.status_code >= 500 else logger.info
    log(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=int((time.perf_counter() - started) * 1000),
    )
    return response
