from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from .db import SessionLocal
from .error_audit import get_error_auditor
from .logging_config import get_logger, log_error
import uuid

logger = get_logger("error_middleware")

class ErrorAuditMiddleware(BaseHTTPMiddleware):
    """Turns unhandled exceptions into a 500 response and an error_audits row"""

    async def dispatch(self, request: Request, call_next):
        request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            return await call_next(request)

        except Exception as error:
            log_error(logger, error, {
                "request_id": request_id,
                "endpoint": str(request.url.path)
            }, "unhandled_request_error")

            db = SessionLocal()
            try:
                get_error_auditor(db).log_api_error(
                    error=error,
                    endpoint=str(request.url.path),
                    http_method=request.method,
                    http_status=500,
                    request_id=request_id,
                    user_agent=request.headers.get("user-agent"),
                    ip_address=request.client.host if request.client else None,
                    context_data={
                        "query_params": dict(request.query_params),
                        "path_params": request.path_params
                    }
                )
            finally:
                db.close()

            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "detail": "Internal server error",
                    "request_id": request_id
                }
            )
