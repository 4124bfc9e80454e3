#!/usr/bin/env python3
"""
End-to-end demonstration of the Registrar platform.

Walks through the catalog, roster, registration, results and projections,
then shows racing registrations and the frozen course name on results.
"""

import os
import sys
import threading

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from registrar.core.exceptions import AuthorizationError, DuplicateRegistrationError
from registrar.core.session import SessionContext
from registrar.main import RegistrarPlatform, configure_logging


def main():
    """Run the demonstration scenario."""
    print("=" * 60)
    print("REGISTRAR PLATFORM DEMONSTRATION")
    print("=" * 60)

    configure_logging("WARNING")
    platform = RegistrarPlatform({'persist': False})

    print("\n1. Creating catalog and roster...")
    create_sample_data(platform)

    print("\n2. Registering students...")
    demonstrate_enrollment(platform)

    print("\n3. Recording results...")
    demonstrate_results(platform)

    print("\n4. Session scoping...")
    demonstrate_scoping(platform)

    print("\n5. Racing registrations...")
    demonstrate_concurrency(platform)

    print("\n6. Course rename after grading...")
    demonstrate_course_rename(platform)

    print("\n7. Platform statistics...")
    for key, value in platform.enrollment.get_statistics().items():
        print(f"  {key}: {value}")

    print("\n" + "=" * 60)
    print("DEMO COMPLETED SUCCESSFULLY!")
    print("=" * 60)


def create_sample_data(platform):
    courses = [
        ("CS101", "Introduction to Computer Science", 3, "Dr. Smith"),
        ("CS201", "Data Structures and Algorithms", 4, "Dr. Hopper"),
        ("MATH101", "Calculus I", 4, "Dr. Noether"),
        ("HIST110", "World History", 2, "Prof. Braudel"),
    ]
    for code, title, credits, instructor in courses:
        platform.catalog.add_course(code, title, credits, instructor)

    students = [
        ("Jane Doe", "jane@university.edu", "STU001"),
        ("Bob Smith", "bob@university.edu", "STU002"),
        ("Carol Davis", "carol@university.edu", "STU003"),
    ]
    for name, email, number in students:
        platform.roster.add_student(name, email, number)

    print(f"  ✓ {len(platform.catalog.list_courses())} courses, "
          f"{len(platform.roster.list_students())} students")


def demonstrate_enrollment(platform):
    jane = platform.roster.find_student_by_number("STU001")
    session = SessionContext.student(jane.student_number)

    for code in ("CS101", "MATH101"):
        platform.enrollment.register_by_keys(jane.student_number, code)

    for course in platform.projections.enrolled_courses(session, jane.id):
        print(f"  {course.code:8} {course.title:35} {course.credits} credits")
    print(f"  Total credits: {platform.projections.total_credits(session, jane.id)}")
    print(f"  Still available: {[c.code for c in platform.projections.available_courses(session, jane.id)]}")

    try:
        platform.enrollment.register_by_keys(jane.student_number, "CS101")
    except DuplicateRegistrationError as e:
        print(f"  ✓ Second registration rejected: {e.error_code}")


def demonstrate_results(platform):
    platform.results.record_result("STU001", "CS101", "A-")
    platform.results.record_result("STU001", "MATH101", "C+")
    platform.results.record_result("STU002", "CS101", "F")

    session = SessionContext.student("STU001")
    for view in platform.projections.student_results(session, "STU001"):
        print(f"  {view.course_code:8} {view.grade:3} {view.tier.value:12} {view.credits_label} credits")

    summary = platform.projections.student_summary(session, "STU001")
    print(f"  {summary.name}: {summary.enrolled_count} enrolled, "
          f"{summary.total_credits} credits, {summary.completed_count} completed")


def demonstrate_scoping(platform):
    bob = SessionContext.student("STU002")
    try:
        platform.projections.student_results(bob, "STU001")
    except AuthorizationError as e:
        print(f"  ✓ STU002 cannot read STU001's results: {e.error_code}")

    overview = platform.projections.registration_overview(SessionContext.admin())
    print(f"  Admin sees {len(overview)} registrations")


def demonstrate_concurrency(platform):
    carol = platform.roster.find_student_by_number("STU003")
    course = platform.catalog.find_course_by_code("CS201")
    outcomes = []
    outcomes_lock = threading.Lock()

    def attempt():
        try:
            platform.enrollment.register(carol.id, course.id)
            outcome = "registered"
        except DuplicateRegistrationError:
            outcome = "duplicate"
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    print(f"  10 concurrent attempts: {outcomes.count('registered')} registered, "
          f"{outcomes.count('duplicate')} duplicates")


def demonstrate_course_rename(platform):
    course = platform.catalog.find_course_by_code("CS101")
    platform.catalog.update_course(course.id, title="Programming Fundamentals")

    for view in platform.projections.student_results(SessionContext.admin(), "STU001"):
        if view.course_code == "CS101":
            print(f"  Result still shows the name at grading time: {view.course_name!r}")
    print(f"  Catalog now shows: {platform.catalog.get_course(course.id).title!r}")

    platform.catalog.delete_course(platform.catalog.find_course_by_code("MATH101").id)
    jane = platform.roster.find_student_by_number("STU001")
    for enrolled in platform.projections.enrolled_courses(SessionContext.admin(), jane.id):
        print(f"  {enrolled.code:8} {enrolled.title:35} resolved={enrolled.resolved}")


if __name__ == "__main__":
    main()
