import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from app.core.request_context import HDR_REQUEST_ID

logger = logging.getLogger("access")

class LoggingMiddleware(BaseHTTPMiddleware):
    """Access log line per call, tagged with a correlation id"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        request_id = request.headers.get(HDR_REQUEST_ID) or uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} "
            f"{process_time * 1000:.1f}ms client={request.client.host if request.client else 'unknown'} "
            f"request_id={request_id}"
        )

        response.headers[HDR_REQUEST_ID] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response
