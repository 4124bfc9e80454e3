"""
Request-scoped identity context passed into every projection call.
"""

from dataclasses import dataclass
from typing import Optional

from .enums import Role
from .exceptions import AuthorizationError, ValidationError


@dataclass(frozen=True)
class SessionContext:
    """Who is asking: a role and, for a student session, their own student number."""
    role: Role
    student_number: Optional[str] = None

    def __post_init__(self):
        if self.role == Role.STUDENT and not (self.student_number or "").strip():
            raise ValidationError("A student session requires a student number")

    @classmethod
    def admin(cls) -> "SessionContext":
        return cls(role=Role.ADMIN)

    @classmethod
    def student(cls, student_number: str) -> "SessionContext":
        return cls(role=Role.STUDENT, student_number=student_number)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_view(self, student_number: Optional[str]) -> bool:
        """Admins see everyone; students only see themselves."""
        if self.is_admin:
            return True
        return student_number is not None and student_number == self.student_number

    def require_admin(self) -> None:
        if not self.is_admin:
            raise AuthorizationError("This operation requires an administrator session")

    def require_view(self, student_number: Optional[str]) -> None:
        if not self.can_view(student_number):
            raise AuthorizationError(
                "Session may not access records of another student",
                details={'student_number': student_number}
            )
