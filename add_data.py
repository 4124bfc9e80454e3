"""
Seed a running Registrar server with courses, students, registrations and results.

Usage:
    python -m registrar.main --port 8000
    python add_data.py
"""

import json
import os
import sys

import requests


def _console_supports_utf8() -> bool:
    enc = getattr(sys.stdout, "encoding", None)
    return enc is not None and "utf" in enc.lower()


_OK_CHAR = "✓" if _console_supports_utf8() else "[OK]"
_FAIL_CHAR = "✗" if _console_supports_utf8() else "[FAIL]"
_WARN_CHAR = "⚠" if _console_supports_utf8() else "[WARN]"

BASE_URL = os.environ.get("REGISTRAR_BASE_URL", "http://127.0.0.1:8000")

ADMIN_HEADERS = {"X-User-Role": "ADMIN"}


def _session() -> requests.Session:
    session = requests.Session()
    session.headers.update(ADMIN_HEADERS)
    return session


def check_server(http: requests.Session) -> bool:
    try:
        response = http.get(f"{BASE_URL}/health", timeout=2)
        if response.status_code == 200:
            print(f"{_OK_CHAR} Server is running at {BASE_URL}")
            return True
    except requests.exceptions.RequestException:
        pass
    print(f"{_FAIL_CHAR} Server is not running!")
    print("\nPlease start the server first:")
    print("  python -m registrar.main --port 8000")
    return False


def post(http: requests.Session, path: str, data: dict, label: str):
    """POST one record; a 409 means it is already there and is not an error."""
    try:
        response = http.post(f"{BASE_URL}{path}", json=data, timeout=5)
    except requests.exceptions.RequestException as e:
        print(f"{_FAIL_CHAR} Error creating {label}: {e}")
        return None

    if response.status_code == 201:
        print(f"{_OK_CHAR} Created {label}")
        return response.json()
    if response.status_code == 409:
        print(f"{_WARN_CHAR} {label} already exists")
        return None
    print(f"{_FAIL_CHAR} Failed to create {label}: {response.text}")
    return None


def find_by(http: requests.Session, path: str, field: str, value: str):
    response = http.get(f"{BASE_URL}{path}", timeout=5)
    response.raise_for_status()
    return next((item for item in response.json() if item.get(field) == value), None)


def main():
    print("=" * 60)
    print("Registrar - Data Addition Script")
    print("=" * 60)

    http = _session()
    if not check_server(http):
        sys.exit(1)

    print("\nCreating courses...")
    courses = [
        ("CS101", "Introduction to Programming", 3, "Dr. Smith"),
        ("CS201", "Data Structures", 4, "Dr. Hopper"),
        ("MATH101", "Calculus I", 4, "Dr. Noether"),
        ("ENG101", "English Composition", 3, "Prof. Woolf"),
    ]
    for code, title, credits, instructor in courses:
        post(http, "/api/courses",
             {"code": code, "title": title, "credits": credits, "instructor": instructor},
             f"course {code}")

    print("\nCreating students...")
    students = [
        ("Alice Johnson", "alice.johnson@university.edu", "STU001"),
        ("Bob Smith", "bob.smith@university.edu", "STU002"),
        ("Carol Davis", "carol.davis@university.edu", "STU003"),
    ]
    for name, email, number in students:
        post(http, "/api/students",
             {"name": name, "email": email, "studentNumber": number},
             f"student {number}")

    print("\nRegistering students...")
    registrations = [("STU001", "CS101"), ("STU001", "MATH101"), ("STU002", "CS101"), ("STU003", "ENG101")]
    for number, code in registrations:
        student = find_by(http, "/api/students", "studentNumber", number)
        course = find_by(http, "/api/courses", "code", code)
        if student and course:
            post(http, "/api/registrations",
                 {"studentId": student["id"], "courseId": course["id"]},
                 f"registration {number}/{code}")

    print("\nRecording results...")
    for number, code, grade in [("STU001", "CS101", "A-"), ("STU002", "CS101", "B+"), ("STU003", "ENG101", "C")]:
        post(http, "/api/results",
             {"studentNumber": number, "courseCode": code, "grade": grade},
             f"result {number}/{code}")

    stats = http.get(f"{BASE_URL}/api/statistics", timeout=5)
    if stats.status_code == 200:
        print("\nSystem Statistics")
        print(json.dumps(stats.json(), indent=2))

    print("\n" + "=" * 60)
    print(f"{_OK_CHAR} Sample data added successfully!")
    print(f"  - View API docs: {BASE_URL}/docs")
    print(f"  - List courses: curl -H 'X-User-Role: ADMIN' {BASE_URL}/api/courses")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print(f"\n\n{_FAIL_CHAR} Interrupted by user")
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"\n{_FAIL_CHAR} Request failed: {e}")
        sys.exit(1)
