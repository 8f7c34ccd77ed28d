"""
Custom Exception Classes
Provides structured exception handling for the planner engine and API
"""

import logging
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class OpenDayException(Exception):
    """Base exception for the Open Day planner"""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize exception"""
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary"""
        return {
            'error': self.error_code,
            'message': self.message,
            'status_code': self.status_code,
            'details': self.details
        }


class ConfigurationError(OpenDayException):
    """Raised when configuration is invalid"""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=details
        )


class CatalogError(OpenDayException):
    """Raised when the event catalog cannot be loaded"""

    def __init__(self, message: str, source: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            error_code="CATALOG_ERROR",
            status_code=503,
            details={'source': source, **(details or {})}
        )


class ValidationError(OpenDayException):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details={'field': field, **(details or {})}
        )


class NotFoundError(OpenDayException):
    """Raised when a requested event does not exist in the catalog"""

    def __init__(self, message: str, event_id: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=404,
            details={'event_id': event_id}
        )


class RateLimitError(OpenDayException):
    """Raised when rate limit is exceeded"""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[int] = None):
        super().__init__(
            message=message,
            error_code="RATE_LIMIT_ERROR",
            status_code=429,
            details={'retry_after': retry_after}
        )


def log_exception(exc: Exception, context: str = ""):
    """Log exception with context"""
    if isinstance(exc, OpenDayException):
        logger.error(
            f"Error in {context}: {exc.error_code} - {exc.message}",
            extra={'details': exc.details}
        )
    else:
        logger.error(f"Unexpected error in {context}: {str(exc)}", exc_info=True)
