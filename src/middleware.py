import time
import uuid
from fastapi import Request

from src.logging_utils import log_event


async def request_id_middleware(request: Request, call_next):
    #1. Generate a unique request ID
    request_id = uuid.uuid4().hex

    #2. Attach it to the request state (lives for this request only)
    request.state.request_id = request_id

    #3. Let the request continue through the rest of the app
    response = await call_next(request)

    #4. Add the request ID to the response headers
    response.headers['X-Request-ID'] = request_id

    return response


async def access_log_middleware(request: Request, call_next):
    """One request_finished event per request, level picked from the status code."""
    t0 = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        # Unhandled errors become a 500 outside this middleware
        _log_finished(request, 500, "error", t0)
        raise

    status = response.status_code
    if status >= 500:
        level = "error"
    elif status >= 400:
        level = "warning"
    else:
        level = "info"

    _log_finished(request, status, level, t0)
    return response


def _log_finished(request: Request, status: int, level: str, t0: float):
    log_event(
        "request_finished",
        level=level,
        method=request.method,
        path=request.url.path,
        status=status,
        duration_ms=int((time.perf_counter() - t0) * 1000),
        request_id=getattr(request.state, "request_id", None),
        email=getattr(request.state, "user_email", None) or "anonymous",
    )
