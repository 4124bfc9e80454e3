"""
Enumerations and constants for the Registrar domain.
"""

from enum import Enum


class EntityType(Enum):
    """Kinds of records held by the entity store."""
    STUDENT = "student"
    COURSE = "course"
    REGISTRATION = "registration"
    RESULT = "result"


class Role(Enum):
    """Roles reported by the identity collaborator."""
    ADMIN = "ADMIN"
    STUDENT = "STUDENT"


class GradeTier(Enum):
    """Severity classification of a letter grade."""
    EXCELLENT = "excellent"
    GOOD = "good"
    SATISFACTORY = "satisfactory"
    OTHER = "other"


# Shown in place of a reference that no longer resolves.
UNRESOLVED_PLACEHOLDER = "-"
