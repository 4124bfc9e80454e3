"""
Core module containing the entity model, identity context and error taxonomy.
"""

from .entities import *
from .interfaces import *
from .exceptions import *
from .enums import *
from .session import SessionContext

__all__ = [
    # Entities
    "AbstractEntity",
    "Student",
    "Course",
    "Registration",
    "Result",
    "parse_date",
    "require_text",

    # Interfaces
    "Repository",
    "SnapshotSource",

    # Session
    "SessionContext",

    # Enums
    "EntityType",
    "Role",
    "GradeTier",
    "UNRESOLVED_PLACEHOLDER",

    # Exceptions
    "RegistrarException",
    "ValidationError",
    "NotFoundError",
    "DuplicateKeyError",
    "DuplicateRegistrationError",
    "UnknownStudentError",
    "UnknownCourseError",
    "AuthorizationError",
    "ConcurrencyError",
    "PersistenceError",
    "ConfigurationError",
]
