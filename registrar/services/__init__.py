"""
Services module containing the catalog, roster, enrollment, results and projection services.
"""

from .catalog_service import CatalogService
from .concurrency_manager import ConcurrencyManager, LockType
from .enrollment_service import EnrollmentService
from .projection_engine import (
    EnrolledCourse, ProjectionEngine, RegistrationView, StudentResultView, StudentSummary
)
from .results_service import ResultsService, get_grade_tier
from .roster_service import RosterService

__all__ = [
    "CatalogService",
    "ConcurrencyManager",
    "LockType",
    "EnrollmentService",
    "ProjectionEngine",
    "EnrolledCourse",
    "RegistrationView",
    "StudentResultView",
    "StudentSummary",
    "ResultsService",
    "get_grade_tier",
    "RosterService",
]
