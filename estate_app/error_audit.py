from sqlalchemy.orm import Session
from fastapi import Request
from .models import ErrorAudit
from .exceptions import ServerError
from .logging_config import get_logger
import traceback

logger = get_logger(__name__)

class ErrorAuditor:
    def __init__(self, db: Session):
        self.db = db

    def log_api_error(
        self,
        error: Exception,
        endpoint: str,
        http_method: str,
        http_status: int,
        user_id: int = None,
        request_id: str = None,
        user_agent: str = None,
        ip_address: str = None,
        context_data: dict = None,
        error_type: str = "API_ERROR"
    ):
        """Persist a backend error. Never raises."""
        try:
            severity = self._determine_severity(http_status, error)

            error_audit = ErrorAudit(
                error_type=error_type,
                severity=severity,
                source="BACKEND",
                user_id=user_id,
                request_id=request_id,
                error_code=error.__class__.__name__,
                error_message=str(error),
                stack_trace="".join(traceback.format_exception(type(error), error, error.__traceback__)),
                endpoint=endpoint,
                http_method=http_method,
                http_status=http_status,
                user_agent=user_agent,
                ip_address=ip_address,
                context_data=context_data or {}
            )

            self.db.add(error_audit)
            self.db.commit()

            logger.error(f"API error logged", extra={
                "error_audit_id": error_audit.id,
                "endpoint": endpoint,
                "severity": severity
            })

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to log API error: {str(e)}")

    def log_server_error(self, error: ServerError, request: Request, user_id: int = None, context_data: dict = None):
        """Record the underlying cause of a ServerError raised by a service"""
        cause = error.original or error
        self.log_api_error(
            error=cause,
            endpoint=str(request.url.path),
            http_method=request.method,
            http_status=500,
            user_id=user_id,
            request_id=getattr(request.state, "request_id", None),
            user_agent=request.headers.get("user-agent"),
            ip_address=request.client.host if request.client else None,
            context_data={"message": error.message, **(context_data or {})},
            error_type="SERVER_ERROR"
        )

    def _determine_severity(self, http_status: int, error: Exception) -> str:
        """Determine error severity based on status code and error type"""
        if http_status >= 500:
            return "CRITICAL"
        elif http_status >= 400:
            return "HIGH"
        elif isinstance(error, (ValueError, TypeError)):
            return "MEDIUM"
        else:
            return "LOW"

def get_error_auditor(db: Session) -> ErrorAuditor:
    return ErrorAuditor(db)
