"""
Core entities for the Registrar domain.
"""

import copy
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union

from .enums import EntityType
from .exceptions import ValidationError


def require_text(field_name: str, value: Any) -> str:
    """Return the stripped string or raise if it is missing/blank."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required", details={'field': field_name})
    return value.strip()


def parse_date(value: Union[date, str, None]) -> date:
    """Accept a date, an ISO ``YYYY-MM-DD`` string, or None for today."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Invalid registration date: {value!r}", details={'field': 'registration_date'})


class AbstractEntity(ABC):
    """Base abstract entity with store-assigned ID, timestamps and versioning."""

    entity_type: EntityType
    # Fields an edit may change; each is stored as the attribute "_<name>".
    editable_fields: Tuple[str, ...] = ()

    def __init__(self, entity_id: Optional[str] = None):
        self._id = entity_id or str(uuid.uuid4())
        self._created_at = datetime.now(timezone.utc)
        self._updated_at = self._created_at
        self._version = 1

    @property
    def id(self) -> str:
        """Get the entity ID."""
        return self._id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def version(self) -> int:
        return self._version

    @abstractmethod
    def validate(self) -> None:
        """Raise ValidationError if a required field is missing or malformed."""
        pass

    def touch(self) -> None:
        self._updated_at = datetime.now(timezone.utc)
        self._version += 1

    def with_changes(self, **fields) -> "AbstractEntity":
        """Return an edited copy; the original instance is left untouched."""
        unknown = set(fields) - set(self.editable_fields)
        if unknown:
            raise ValidationError(
                f"Unknown field(s) for {self.entity_type.value}: {', '.join(sorted(unknown))}",
                details={'fields': sorted(unknown)}
            )
        clone = copy.copy(self)
        for name, value in fields.items():
            setattr(clone, f"_{name}", value)
        clone._normalize()
        clone.validate()
        clone.touch()
        return clone

    def _normalize(self) -> None:
        """Strip whitespace from text fields; subclasses override."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to dictionary."""
        return {
            'id': self._id,
            'created_at': self._created_at.isoformat(),
            'updated_at': self._updated_at.isoformat(),
            'version': self._version,
        }

    def _restore_audit_fields(self, data: Dict[str, Any]) -> None:
        if data.get('created_at'):
            self._created_at = datetime.fromisoformat(data['created_at'])
        if data.get('updated_at'):
            self._updated_at = datetime.fromisoformat(data['updated_at'])
        self._version = data.get('version', 1)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AbstractEntity):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._id))

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id}, version={self._version})"


class Student(AbstractEntity):
    """Student record, identified to humans by its student number."""

    entity_type = EntityType.STUDENT
    editable_fields = ('name', 'email', 'student_number')

    def __init__(self, name: str, email: str, student_number: str, **kwargs):
        super().__init__(**kwargs)
        self._name = name
        self._email = email
        self._student_number = student_number
        self._normalize()

    @property
    def name(self) -> str:
        return self._name

    @property
    def email(self) -> str:
        return self._email

    @property
    def student_number(self) -> str:
        return self._student_number

    def _normalize(self) -> None:
        for attr in ('_name', '_email', '_student_number'):
            value = getattr(self, attr)
            if isinstance(value, str):
                setattr(self, attr, value.strip())

    def validate(self) -> None:
        require_text('name', self._name)
        require_text('email', self._email)
        require_text('student_number', self._student_number)

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'name': self._name,
            'email': self._email,
            'student_number': self._student_number,
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Student":
        student = cls(
            name=data['name'],
            email=data['email'],
            student_number=data['student_number'],
            entity_id=data['id']
        )
        student._restore_audit_fields(data)
        return student


class Course(AbstractEntity):
    """Course entity representing a catalog entry."""

    entity_type = EntityType.COURSE
    editable_fields = ('code', 'title', 'credits', 'instructor')

    def __init__(self, code: str, title: str, credits: int, instructor: str, **kwargs):
        super().__init__(**kwargs)
        self._code = code
        self._title = title
        self._credits = credits
        self._instructor = instructor
        self._normalize()

    @property
    def code(self) -> str:
        return self._code

    @property
    def title(self) -> str:
        return self._title

    @property
    def credits(self) -> int:
        return self._credits

    @property
    def instructor(self) -> str:
        return self._instructor

    def _normalize(self) -> None:
        for attr in ('_code', '_title', '_instructor'):
            value = getattr(self, attr)
            if isinstance(value, str):
                setattr(self, attr, value.strip())

    def validate(self) -> None:
        require_text('code', self._code)
        require_text('title', self._title)
        require_text('instructor', self._instructor)
        # bool is an int subclass; True is not a credit count
        if isinstance(self._credits, bool) or not isinstance(self._credits, int) or self._credits <= 0:
            raise ValidationError("credits must be a positive integer", details={'field': 'credits'})

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'code': self._code,
            'title': self._title,
            'credits': self._credits,
            'instructor': self._instructor,
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Course":
        course = cls(
            code=data['code'],
            title=data['title'],
            credits=data['credits'],
            instructor=data['instructor'],
            entity_id=data['id']
        )
        course._restore_audit_fields(data)
        return course


class Registration(AbstractEntity):
    """A student's registration in a course."""

    entity_type = EntityType.REGISTRATION

    def __init__(self, student_id: str, course_id: str,
                 registration_date: Union[date, str, None] = None, **kwargs):
        super().__init__(**kwargs)
        self._student_id = student_id
        self._course_id = course_id
        self._registration_date = parse_date(registration_date)

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def registration_date(self) -> date:
        return self._registration_date

    @property
    def pair(self) -> Tuple[str, str]:
        """The (student_id, course_id) key that must be unique among live registrations."""
        return (self._student_id, self._course_id)

    def validate(self) -> None:
        require_text('student_id', self._student_id)
        require_text('course_id', self._course_id)

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'student_id': self._student_id,
            'course_id': self._course_id,
            'registration_date': self._registration_date.isoformat(),
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Registration":
        registration = cls(
            student_id=data['student_id'],
            course_id=data['course_id'],
            registration_date=data['registration_date'],
            entity_id=data['id']
        )
        registration._restore_audit_fields(data)
        return registration


class Result(AbstractEntity):
    """
    Grade record referencing a student and a course by natural key.

    ``course_name`` is copied from the course at write time and is not kept
    in sync with later renames.
    """

    entity_type = EntityType.RESULT
    editable_fields = ('student_number', 'course_code', 'grade', 'course_name')

    def __init__(self, student_number: str, course_code: str, grade: str,
                 course_name: str = "", **kwargs):
        super().__init__(**kwargs)
        self._student_number = student_number
        self._course_code = course_code
        self._grade = grade
        self._course_name = course_name
        self._normalize()

    @property
    def student_number(self) -> str:
        return self._student_number

    @property
    def course_code(self) -> str:
        return self._course_code

    @property
    def grade(self) -> str:
        return self._grade

    @property
    def course_name(self) -> str:
        return self._course_name

    def _normalize(self) -> None:
        for attr in ('_student_number', '_course_code', '_grade'):
            value = getattr(self, attr)
            if isinstance(value, str):
                setattr(self, attr, value.strip())

    def validate(self) -> None:
        require_text('student_number', self._student_number)
        require_text('course_code', self._course_code)
        require_text('grade', self._grade)

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            'student_number': self._student_number,
            'course_code': self._course_code,
            'grade': self._grade,
            'course_name': self._course_name,
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Result":
        result = cls(
            student_number=data['student_number'],
            course_code=data['course_code'],
            grade=data['grade'],
            course_name=data.get('course_name', ""),
            entity_id=data['id']
        )
        result._restore_audit_fields(data)
        return result


ENTITY_CLASSES = {
    EntityType.STUDENT: Student,
    EntityType.COURSE: Course,
    EntityType.REGISTRATION: Registration,
    EntityType.RESULT: Result,
}
