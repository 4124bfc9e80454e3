"""
REST API implementation for the Registrar using FastAPI.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..core.entities import Course, Registration, Result, Student
from ..core.enums import GradeTier, Role
from ..core.exceptions import (
    AuthorizationError, ConcurrencyError, DuplicateKeyError, NotFoundError,
    RegistrarException, ValidationError
)
from ..core.session import SessionContext
from ..services import (
    CatalogService, EnrollmentService, ProjectionEngine, ResultsService, RosterService,
    get_grade_tier
)
from ..services.projection_engine import (
    EnrolledCourse, RegistrationView, StudentResultView, StudentSummary
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses must come before their bases.
ERROR_STATUS_CODES = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateKeyError, status.HTTP_409_CONFLICT),
    (ConcurrencyError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_code_for(error: RegistrarException) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


# Pydantic models for API
class ApiModel(BaseModel):
    """JSON uses camelCase keys, Python code uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CourseCreate(ApiModel):
    code: str
    title: str
    credits: int
    instructor: str


class CourseUpdate(ApiModel):
    code: Optional[str] = None
    title: Optional[str] = None
    credits: Optional[int] = None
    instructor: Optional[str] = None


class CourseResponse(ApiModel):
    id: str
    code: str
    title: str
    credits: int
    instructor: str
    version: int


class StudentCreate(ApiModel):
    name: str
    email: str
    student_number: str


class StudentUpdate(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None
    student_number: Optional[str] = None


class StudentResponse(ApiModel):
    id: str
    name: str
    email: str
    student_number: str
    version: int


class RegistrationCreate(ApiModel):
    student_id: str
    course_id: str
    registration_date: Optional[date] = None


class RegistrationResponse(ApiModel):
    id: str
    student_id: str
    course_id: str
    registration_date: date


class ResultWrite(ApiModel):
    student_number: str
    course_code: str
    grade: str


class ResultUpdate(ApiModel):
    student_number: Optional[str] = None
    course_code: Optional[str] = None
    grade: Optional[str] = None


class ResultResponse(ApiModel):
    id: str
    student_number: str
    course_code: str
    course_name: str
    grade: str
    tier: GradeTier


class EnrolledCourseResponse(ApiModel):
    registration_id: str
    course_id: str
    code: str
    title: str
    credits: Optional[int] = None
    instructor: str
    registration_date: date
    resolved: bool


class StudentResultResponse(ApiModel):
    id: str
    student_number: str
    course_code: str
    course_name: str
    grade: str
    tier: GradeTier
    credits: Optional[int] = None
    credits_label: str
    resolved: bool


class StudentSummaryResponse(ApiModel):
    student_id: str
    student_number: str
    name: str
    email: str
    enrolled_count: int
    total_credits: int
    completed_count: int


class RegistrationViewResponse(ApiModel):
    id: str
    student_id: str
    student_number: str
    student_name: str
    course_id: str
    course_code: str
    course_title: str
    registration_date: date
    student_resolved: bool
    course_resolved: bool


def get_session(x_user_role: Optional[str] = Header(None),
                x_student_number: Optional[str] = Header(None)) -> SessionContext:
    """Build the caller's session from the identity headers."""
    if not x_user_role:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Role header")
    try:
        role = Role(x_user_role.strip().upper())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Unknown role: {x_user_role}")
    try:
        return SessionContext(role=role, student_number=(x_student_number or "").strip() or None)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)


class RegistrarRestAPI:
    """REST API implementation for the Registrar."""

    def __init__(self, catalog: CatalogService, roster: RosterService,
                 enrollment: EnrollmentService, results: ResultsService,
                 projections: ProjectionEngine):
        self._catalog = catalog
        self._roster = roster
        self._enrollment = enrollment
        self._results = results
        self._projections = projections

        self.app = FastAPI(
            title="Registrar API",
            description="Courses, students, registrations and grade results",
            version="1.0.0",
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_error_handlers()
        self._setup_routes()

    def _setup_error_handlers(self):
        @self.app.exception_handler(RegistrarException)
        async def registrar_error(request: Request, exc: RegistrarException):
            status_code = status_code_for(exc)
            if status_code >= 500:
                logger.error("Unhandled %s on %s: %s", exc.error_code, request.url.path, exc.message)
            return JSONResponse(
                status_code=status_code,
                content={'detail': exc.message, 'error_code': exc.error_code, 'details': exc.details}
            )

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_error(request: Request, exc: RequestValidationError):
            # Missing or mistyped body fields are reported as 400, same as domain validation.
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={'detail': jsonable_errors(exc), 'error_code': ValidationError.default_error_code}
            )

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/", response_model=Dict[str, str])
        def root():
            return {
                "message": "Registrar API",
                "version": "1.0.0",
                "docs": "/docs"
            }

        @self.app.get("/health", response_model=Dict[str, str])
        def health_check():
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        # Course endpoints
        @self.app.get("/api/courses", response_model=List[CourseResponse])
        def list_courses(session: SessionContext = Depends(get_session)):
            return [self._course_to_response(c) for c in self._catalog.list_courses()]

        @self.app.get("/api/courses/{course_id}", response_model=CourseResponse)
        def get_course(course_id: str, session: SessionContext = Depends(get_session)):
            return self._course_to_response(self._catalog.get_course(course_id))

        @self.app.post("/api/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
        def create_course(course_data: CourseCreate, session: SessionContext = Depends(get_session)):
            session.require_admin()
            course = self._catalog.add_course(
                code=course_data.code,
                title=course_data.title,
                credits=course_data.credits,
                instructor=course_data.instructor
            )
            return self._course_to_response(course)

        @self.app.put("/api/courses/{course_id}", response_model=CourseResponse)
        def update_course(course_id: str, course_data: CourseUpdate,
                          session: SessionContext = Depends(get_session)):
            session.require_admin()
            course = self._catalog.update_course(course_id, **course_data.model_dump(exclude_unset=True))
            return self._course_to_response(course)

        @self.app.delete("/api/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
        def delete_course(course_id: str, session: SessionContext = Depends(get_session)):
            session.require_admin()
            self._catalog.delete_course(course_id)
            return Response(status_code=status.HTTP_204_NO_CONTENT)

        # Student endpoints
        @self.app.get("/api/students", response_model=List[StudentResponse])
        def list_students(session: SessionContext = Depends(get_session)):
            students = self._roster.list_students()
            return [self._student_to_response(s) for s in students if session.can_view(s.student_number)]

        @self.app.get("/api/students/{student_id}", response_model=StudentResponse)
        def get_student(student_id: str, session: SessionContext = Depends(get_session)):
            student = self._roster.get_student(student_id)
            session.require_view(student.student_number)
            return self._student_to_response(student)

        @self.app.get("/api/students/{student_number}/summary", response_model=StudentSummaryResponse)
        def get_student_summary(student_number: str, session: SessionContext = Depends(get_session)):
            return self._summary_to_response(self._projections.student_summary(session, student_number))

        @self.app.post("/api/students", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
        def create_student(student_data: StudentCreate, session: SessionContext = Depends(get_session)):
            session.require_admin()
            student = self._roster.add_student(
                name=student_data.name,
                email=student_data.email,
                student_number=student_data.student_number
            )
            return self._student_to_response(student)

        @self.app.put("/api/students/{student_id}", response_model=StudentResponse)
        def update_student(student_id: str, student_data: StudentUpdate,
                           session: SessionContext = Depends(get_session)):
            session.require_admin()
            student = self._roster.update_student(student_id, **student_data.model_dump(exclude_unset=True))
            return self._student_to_response(student)

        @self.app.delete("/api/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
        def delete_student(student_id: str, session: SessionContext = Depends(get_session)):
            session.require_admin()
            self._roster.delete_student(student_id)
            return Response(status_code=status.HTTP_204_NO_CONTENT)

        # Registration endpoints
        @self.app.get("/api/registrations", response_model=List[RegistrationResponse])
        def list_registrations(session: SessionContext = Depends(get_session)):
            registrations = self._enrollment.list_registrations()
            if not session.is_admin:
                own = self._own_student(session)
                registrations = [r for r in registrations if r.student_id == own.id]
            return [self._registration_to_response(r) for r in registrations]

        @self.app.post("/api/registrations", response_model=RegistrationResponse,
                       status_code=status.HTTP_201_CREATED)
        def create_registration(registration_data: RegistrationCreate,
                                session: SessionContext = Depends(get_session)):
            if not session.is_admin and self._own_student(session).id != registration_data.student_id:
                raise AuthorizationError("Students may only register themselves")
            registration = self._enrollment.register(
                registration_data.student_id,
                registration_data.course_id,
                registration_data.registration_date
            )
            return self._registration_to_response(registration)

        @self.app.delete("/api/registrations/{registration_id}", status_code=status.HTTP_204_NO_CONTENT)
        def delete_registration(registration_id: str, session: SessionContext = Depends(get_session)):
            registration = self._enrollment.get_registration(registration_id)
            if not session.is_admin and self._own_student(session).id != registration.student_id:
                raise AuthorizationError("Students may only drop their own registrations")
            self._enrollment.drop_registration(registration_id)
            return Response(status_code=status.HTTP_204_NO_CONTENT)

        @self.app.get("/api/admin/registrations", response_model=List[RegistrationViewResponse])
        def registration_overview(session: SessionContext = Depends(get_session)):
            return [self._registration_view_to_response(v)
                    for v in self._projections.registration_overview(session)]

        # Result endpoints
        @self.app.get("/api/results", response_model=List[ResultResponse])
        def list_results(session: SessionContext = Depends(get_session)):
            results = self._results.list_results()
            return [self._result_to_response(r) for r in results if session.can_view(r.student_number)]

        @self.app.post("/api/results", response_model=ResultResponse, status_code=status.HTTP_201_CREATED)
        def create_result(result_data: ResultWrite, session: SessionContext = Depends(get_session)):
            session.require_admin()
            result = self._results.record_result(
                result_data.student_number,
                result_data.course_code,
                result_data.grade
            )
            return self._result_to_response(result)

        @self.app.put("/api/results/{result_id}", response_model=ResultResponse)
        def update_result(result_id: str, result_data: ResultUpdate,
                          session: SessionContext = Depends(get_session)):
            session.require_admin()
            result = self._results.update_result(result_id, **result_data.model_dump(exclude_unset=True))
            return self._result_to_response(result)

        @self.app.delete("/api/results/{result_id}", status_code=status.HTTP_204_NO_CONTENT)
        def delete_result(result_id: str, session: SessionContext = Depends(get_session)):
            session.require_admin()
            self._results.delete_result(result_id)
            return Response(status_code=status.HTTP_204_NO_CONTENT)

        # Student self-service endpoints
        @self.app.get("/api/me/courses", response_model=List[EnrolledCourseResponse])
        def my_courses(session: SessionContext = Depends(get_session)):
            student = self._own_student(session)
            return [self._enrolled_to_response(c)
                    for c in self._projections.enrolled_courses(session, student.id)]

        @self.app.get("/api/me/available-courses", response_model=List[CourseResponse])
        def my_available_courses(session: SessionContext = Depends(get_session)):
            student = self._own_student(session)
            return [self._course_to_response(c)
                    for c in self._projections.available_courses(session, student.id)]

        @self.app.get("/api/me/results", response_model=List[StudentResultResponse])
        def my_results(session: SessionContext = Depends(get_session)):
            student = self._own_student(session)
            return [self._student_result_to_response(r)
                    for r in self._projections.student_results(session, student.student_number)]

        @self.app.get("/api/me/summary", response_model=StudentSummaryResponse)
        def my_summary(session: SessionContext = Depends(get_session)):
            student = self._own_student(session)
            return self._summary_to_response(self._projections.student_summary(session, student.student_number))

        @self.app.get("/api/statistics", response_model=Dict[str, Any])
        def get_statistics(session: SessionContext = Depends(get_session)):
            session.require_admin()
            return {
                "courses": len(self._catalog.list_courses()),
                "students": len(self._roster.list_students()),
                "results": len(self._results.list_results()),
                "enrollment": self._enrollment.get_statistics(),
            }

    def _own_student(self, session: SessionContext) -> Student:
        """The student record behind a student session."""
        if session.role != Role.STUDENT:
            raise AuthorizationError("This endpoint requires a student session")
        student = self._roster.find_student_by_number(session.student_number)
        if student is None:
            raise NotFoundError(
                f"Student {session.student_number} not found",
                details={'student_number': session.student_number}
            )
        return student

    def _course_to_response(self, course: Course) -> CourseResponse:
        return CourseResponse(
            id=course.id,
            code=course.code,
            title=course.title,
            credits=course.credits,
            instructor=course.instructor,
            version=course.version
        )

    def _student_to_response(self, student: Student) -> StudentResponse:
        return StudentResponse(
            id=student.id,
            name=student.name,
            email=student.email,
            student_number=student.student_number,
            version=student.version
        )

    def _registration_to_response(self, registration: Registration) -> RegistrationResponse:
        return RegistrationResponse(
            id=registration.id,
            student_id=registration.student_id,
            course_id=registration.course_id,
            registration_date=registration.registration_date
        )

    def _result_to_response(self, result: Result) -> ResultResponse:
        return ResultResponse(
            id=result.id,
            student_number=result.student_number,
            course_code=result.course_code,
            course_name=result.course_name,
            grade=result.grade,
            tier=get_grade_tier(result.grade)
        )

    def _enrolled_to_response(self, course: EnrolledCourse) -> EnrolledCourseResponse:
        return EnrolledCourseResponse(
            registration_id=course.registration_id,
            course_id=course.course_id,
            code=course.code,
            title=course.title,
            credits=course.credits,
            instructor=course.instructor,
            registration_date=course.registration_date,
            resolved=course.resolved
        )

    def _student_result_to_response(self, view: StudentResultView) -> StudentResultResponse:
        return StudentResultResponse(
            id=view.result_id,
            student_number=view.student_number,
            course_code=view.course_code,
            course_name=view.course_name,
            grade=view.grade,
            tier=view.tier,
            credits=view.credits,
            credits_label=view.credits_label,
            resolved=view.resolved
        )

    def _summary_to_response(self, summary: StudentSummary) -> StudentSummaryResponse:
        return StudentSummaryResponse(
            student_id=summary.student_id,
            student_number=summary.student_number,
            name=summary.name,
            email=summary.email,
            enrolled_count=summary.enrolled_count,
            total_credits=summary.total_credits,
            completed_count=summary.completed_count
        )

    def _registration_view_to_response(self, view: RegistrationView) -> RegistrationViewResponse:
        return RegistrationViewResponse(
            id=view.registration_id,
            student_id=view.student_id,
            student_number=view.student_number,
            student_name=view.student_name,
            course_id=view.course_id,
            course_code=view.course_code,
            course_title=view.course_title,
            registration_date=view.registration_date,
            student_resolved=view.student_resolved,
            course_resolved=view.course_resolved
        )


def jsonable_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    """Field errors from FastAPI, reduced to JSON-safe location and message pairs."""
    return [
        {'loc': [str(part) for part in error.get('loc', ())], 'msg': str(error.get('msg', ''))}
        for error in exc.errors()
    ]
