"""
Custom Exception Hierarchy

Every error raised by the service carries a machine-readable code and a
details dict so the API layer can turn it into a JSON body unchanged.
"""
from typing import Optional, Dict, Any


class CardioRiskError(Exception):
    """Base exception for all cardiovascular risk service errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(CardioRiskError):
    """Missing or malformed form input (refused before anything is stored)."""

    status_code = 400

    def __init__(
        self,
        message: str,
        fields: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"fields": list(fields or []), **(details or {})}
        )
        self.fields = list(fields or [])


class AuthenticationError(CardioRiskError):
    """Missing credentials or rejected sign-in."""

    status_code = 401

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="AUTHENTICATION_ERROR",
            details=details
        )


class NotFoundError(CardioRiskError):
    """A patient, analysis or report id that does not exist."""

    status_code = 404

    def __init__(
        self,
        message: str,
        resource: str = "unknown",
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="NOT_FOUND",
            details={"resource": resource, "id": resource_id, **(details or {})}
        )
        self.resource = resource
        self.resource_id = resource_id


class BackendError(CardioRiskError):
    """Operations the remote backend would serve but which are not available."""

    status_code = 502

    def __init__(
        self,
        message: str,
        operation: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="BACKEND_ERROR",
            details={"operation": operation, **(details or {})}
        )
        self.operation = operation


class ReportGenerationError(CardioRiskError):
    """Errors during report generation."""

    def __init__(
        self,
        message: str,
        report_type: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="REPORT_ERROR",
            details={"report_type": report_type, **(details or {})}
        )
        self.report_type = report_type
