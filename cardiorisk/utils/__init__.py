"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    CardioRiskError,
    ValidationError,
    AuthenticationError,
    NotFoundError,
    BackendError,
    ReportGenerationError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "CardioRiskError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "BackendError",
    "ReportGenerationError",
]
