"""Tests for session-scoped read projections."""

import pytest

from registrar.core.enums import GradeTier, UNRESOLVED_PLACEHOLDER
from registrar.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from registrar.core.session import SessionContext


class TestEnrolledCourses:

    def test_total_credits(self, projections, enrollment, jane, jane_session, cs101, math201):
        enrollment.register(jane.id, cs101.id)
        enrollment.register(jane.id, math201.id)
        assert projections.total_credits(jane_session, jane.id) == 7

    def test_enrolled_and_available_are_disjoint(self, projections, enrollment, catalog,
                                                 jane, jane_session, cs101, math201):
        catalog.add_course("HIST110", "World History", 2, "Prof. Braudel")
        enrollment.register(jane.id, cs101.id)

        enrolled = {c.course_id for c in projections.enrolled_courses(jane_session, jane.id)}
        available = {c.id for c in projections.available_courses(jane_session, jane.id)}
        assert enrolled.isdisjoint(available)
        assert enrolled | available == {c.id for c in catalog.list_courses()}

    def test_deleted_course_shows_placeholder(self, projections, enrollment, catalog,
                                              jane, jane_session, cs101, math201):
        enrollment.register(jane.id, cs101.id)
        enrollment.register(jane.id, math201.id)
        catalog.delete_course(cs101.id)

        rows = projections.enrolled_courses(jane_session, jane.id)
        orphan = next(r for r in rows if r.course_id == cs101.id)
        assert not orphan.resolved
        assert orphan.code == UNRESOLVED_PLACEHOLDER
        assert orphan.credit_value == 0
        assert projections.total_credits(jane_session, jane.id) == 4

    def test_unknown_student_id_is_empty_for_admin(self, projections, admin, cs101):
        assert projections.enrolled_courses(admin, "missing") == []
        assert projections.total_credits(admin, "missing") == 0


class TestStudentResults:

    def test_results_with_tier_and_credits(self, projections, results, jane, jane_session, cs101):
        results.record_result("STU001", "CS101", "B+")
        [view] = projections.student_results(jane_session, "STU001")
        assert view.tier == GradeTier.GOOD
        assert view.credits == 3
        assert view.credits_label == "3"

    def test_credits_placeholder_when_course_gone(self, projections, results, catalog,
                                                  jane, jane_session, cs101):
        results.record_result("STU001", "CS101", "A")
        catalog.delete_course(cs101.id)
        [view] = projections.student_results(jane_session, "STU001")
        assert not view.resolved
        assert view.credits_label == UNRESOLVED_PLACEHOLDER
        assert view.course_name == "Intro to CS"

    def test_completed_count(self, projections, results, jane, jane_session, cs101, math201):
        results.record_result("STU001", "CS101", "A")
        results.record_result("STU001", "MATH201", "C")
        assert projections.completed_count(jane_session, "STU001") == 2


class TestScoping:

    def test_student_cannot_read_another_student(self, projections, jane, bob, results, cs101):
        results.record_result("STU002", "CS101", "A")
        jane_session = SessionContext.student("STU001")
        with pytest.raises(AuthorizationError):
            projections.student_results(jane_session, "STU002")
        with pytest.raises(AuthorizationError):
            projections.enrolled_courses(jane_session, bob.id)
        with pytest.raises(AuthorizationError):
            projections.student_summary(jane_session, "STU002")

    def test_admin_reads_anyone(self, projections, admin, jane, bob, results, cs101):
        results.record_result("STU002", "CS101", "A")
        assert len(projections.student_results(admin, "STU002")) == 1

    def test_registration_overview_requires_admin(self, projections, jane_session):
        with pytest.raises(AuthorizationError):
            projections.registration_overview(jane_session)

    def test_student_session_needs_number(self):
        with pytest.raises(ValidationError):
            SessionContext.student("  ")


class TestSummaryAndOverview:

    def test_summary(self, projections, enrollment, results, jane, jane_session, cs101, math201):
        enrollment.register(jane.id, cs101.id)
        enrollment.register(jane.id, math201.id)
        results.record_result("STU001", "CS101", "A")
        summary = projections.student_summary(jane_session, "STU001")
        assert summary.enrolled_count == 2
        assert summary.total_credits == 7
        assert summary.completed_count == 1
        assert summary.name == "Jane Doe"

    def test_summary_unknown_student(self, projections, admin):
        with pytest.raises(NotFoundError):
            projections.student_summary(admin, "STU999")

    def test_overview_marks_deleted_student(self, projections, enrollment, roster, admin, jane, cs101):
        enrollment.register(jane.id, cs101.id)
        roster.delete_student(jane.id)
        [view] = projections.registration_overview(admin)
        assert not view.student_resolved
        assert view.student_number == UNRESOLVED_PLACEHOLDER
        assert view.course_code == "CS101"


def test_end_to_end_scenario(platform, admin):
    """Catalog, registration, grading, rename and drop as one student sees them."""
    course = platform.catalog.add_course("CS101", "Intro to CS", 3, "Dr. Smith")
    platform.catalog.add_course("MATH201", "Linear Algebra", 4, "Dr. Noether")
    student = platform.roster.add_student("Jane Doe", "jane@university.edu", "STU001")
    session = SessionContext.student("STU001")

    platform.enrollment.register(student.id, course.id)
    assert [c.code for c in platform.projections.enrolled_courses(session, student.id)] == ["CS101"]
    assert [c.code for c in platform.projections.available_courses(session, student.id)] == ["MATH201"]

    platform.results.record_result("STU001", "CS101", "A-")
    platform.catalog.update_course(course.id, title="Programming Fundamentals")
    [view] = platform.projections.student_results(session, "STU001")
    assert view.course_name == "Intro to CS"
    assert view.tier == GradeTier.EXCELLENT

    platform.enrollment.drop(student.id, course.id)
    assert platform.projections.enrolled_courses(session, student.id) == []
    assert platform.projections.completed_count(session, "STU001") == 1
    assert len(platform.projections.registration_overview(admin)) == 0
