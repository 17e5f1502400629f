from typing import Optional, Dict
from fastapi import Request

# Correlation header forwarded by the member portal and admin back office
HDR_REQUEST_ID = "X-Request-Id"


def get_request_context(request: Request) -> Dict[str, Optional[str]]:
    """Audit context for a transition: who called which endpoint from where."""
    return {
        "ip_address": request.client.host if request.client else None,
        "endpoint": f"{request.method} {request.url.path}",
        # LoggingMiddleware assigns one when the caller didn't send it
        "request_id": getattr(request.state, "request_id", None) or request.headers.get(HDR_REQUEST_ID),
    }
