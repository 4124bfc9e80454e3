"""
Custom exceptions for the Registrar domain.
"""

from typing import Optional, Any, Dict


class RegistrarException(Exception):
    """Base exception for all Registrar-related errors."""

    default_error_code = "REGISTRAR_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}


class ValidationError(RegistrarException):
    """Raised when data validation fails."""
    default_error_code = "VALIDATION_ERROR"


class NotFoundError(RegistrarException):
    """Raised when a referenced id does not resolve to a live entity."""
    default_error_code = "NOT_FOUND"


class DuplicateKeyError(RegistrarException):
    """Raised when a natural key is already taken."""
    default_error_code = "DUPLICATE_KEY"


class DuplicateRegistrationError(DuplicateKeyError):
    """Raised when a live registration already exists for a student/course pair."""
    default_error_code = "DUPLICATE_REGISTRATION"


class UnknownStudentError(NotFoundError):
    """Raised when a student number does not resolve."""
    default_error_code = "UNKNOWN_STUDENT"


class UnknownCourseError(NotFoundError):
    """Raised when a course code does not resolve."""
    default_error_code = "UNKNOWN_COURSE"


class AuthorizationError(RegistrarException):
    """Raised when access is denied."""
    default_error_code = "AUTHORIZATION_ERROR"


class ConcurrencyError(RegistrarException):
    """Raised when concurrency control fails."""
    default_error_code = "CONCURRENCY_ERROR"


class PersistenceError(RegistrarException):
    """Raised when persistence operations fail."""
    default_error_code = "PERSISTENCE_ERROR"


class ConfigurationError(RegistrarException):
    """Raised when configuration is invalid."""
    default_error_code = "CONFIGURATION_ERROR"
