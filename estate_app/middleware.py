import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from .logging_config import get_logger, log_api_request, log_api_response

logger = get_logger("middleware")

class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all API requests and responses"""

    async def dispatch(self, request: Request, call_next):
        request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        log_api_request(logger, request.method, str(request.url.path), request_id)

        response = await call_next(request)

        duration_ms = round((time.time() - start_time) * 1000, 2)
        log_api_response(
            logger,
            request.method,
            str(request.url.path),
            response.status_code,
            duration_ms,
            request_id
        )

        response.headers["X-Request-ID"] = request_id

        return response
