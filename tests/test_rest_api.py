"""Tests for the REST API using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

ADMIN = {"X-User-Role": "ADMIN"}


def student_headers(number):
    return {"X-User-Role": "STUDENT", "X-Student-Number": number}


@pytest.fixture
def client(platform):
    return TestClient(platform.app)


@pytest.fixture
def seeded(client):
    """One course and one student created over HTTP."""
    course = client.post("/api/courses", headers=ADMIN, json={
        "code": "CS101", "title": "Intro to CS", "credits": 3, "instructor": "Dr. Smith"
    }).json()
    student = client.post("/api/students", headers=ADMIN, json={
        "name": "Jane Doe", "email": "jane@university.edu", "studentNumber": "STU001"
    }).json()
    return {'course': course, 'student': student}


class TestHealthAndIdentity:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_role_is_401(self, client):
        assert client.get("/api/courses").status_code == 401

    def test_unknown_role_is_401(self, client):
        assert client.get("/api/courses", headers={"X-User-Role": "JANITOR"}).status_code == 401

    def test_student_role_without_number_is_401(self, client):
        assert client.get("/api/courses", headers={"X-User-Role": "STUDENT"}).status_code == 401


class TestCourses:

    def test_create_returns_camel_case(self, client):
        response = client.post("/api/courses", headers=ADMIN, json={
            "code": "CS101", "title": "Intro to CS", "credits": 3, "instructor": "Dr. Smith"
        })
        assert response.status_code == 201
        body = response.json()
        assert body["code"] == "CS101"
        assert body["version"] == 1

    def test_duplicate_code_is_409(self, client, seeded):
        response = client.post("/api/courses", headers=ADMIN, json={
            "code": "CS101", "title": "Again", "credits": 2, "instructor": "Dr. Jones"
        })
        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_KEY"

    def test_missing_field_is_400(self, client):
        response = client.post("/api/courses", headers=ADMIN, json={"code": "CS101"})
        assert response.status_code == 400

    def test_zero_credits_is_400(self, client):
        response = client.post("/api/courses", headers=ADMIN, json={
            "code": "CS101", "title": "Intro", "credits": 0, "instructor": "Dr. Smith"
        })
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_student_cannot_create(self, client, seeded):
        response = client.post("/api/courses", headers=student_headers("STU001"), json={
            "code": "CS102", "title": "Next", "credits": 3, "instructor": "Dr. Smith"
        })
        assert response.status_code == 403

    def test_partial_update(self, client, seeded):
        course_id = seeded['course']['id']
        response = client.put(f"/api/courses/{course_id}", headers=ADMIN, json={"title": "Programming I"})
        assert response.status_code == 200
        assert response.json()["title"] == "Programming I"
        assert response.json()["credits"] == 3

    def test_get_unknown_is_404(self, client):
        assert client.get("/api/courses/missing", headers=ADMIN).status_code == 404

    def test_delete_is_204(self, client, seeded):
        course_id = seeded['course']['id']
        assert client.delete(f"/api/courses/{course_id}", headers=ADMIN).status_code == 204
        assert client.get(f"/api/courses/{course_id}", headers=ADMIN).status_code == 404

    def test_delete_unknown_course_is_404(self, client, seeded):
        response = client.delete("/api/courses/missing", headers=ADMIN)
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_update_unknown_student_is_404(self, client, seeded):
        response = client.put("/api/students/missing", headers=ADMIN, json={"name": "Nobody"})
        assert response.status_code == 404


class TestRegistrations:

    def test_register_and_duplicate(self, client, seeded):
        payload = {"studentId": seeded['student']['id'], "courseId": seeded['course']['id']}
        first = client.post("/api/registrations", headers=ADMIN, json=payload)
        assert first.status_code == 201
        assert first.json()["registrationDate"]

        second = client.post("/api/registrations", headers=ADMIN, json=payload)
        assert second.status_code == 409
        assert second.json()["error_code"] == "DUPLICATE_REGISTRATION"

    def test_unknown_course_is_404(self, client, seeded):
        response = client.post("/api/registrations", headers=ADMIN, json={
            "studentId": seeded['student']['id'], "courseId": "missing"
        })
        assert response.status_code == 404

    def test_student_registers_self_only(self, client, seeded):
        other = client.post("/api/students", headers=ADMIN, json={
            "name": "Bob", "email": "bob@university.edu", "studentNumber": "STU002"
        }).json()
        response = client.post("/api/registrations", headers=student_headers("STU001"), json={
            "studentId": other['id'], "courseId": seeded['course']['id']
        })
        assert response.status_code == 403

        own = client.post("/api/registrations", headers=student_headers("STU001"), json={
            "studentId": seeded['student']['id'], "courseId": seeded['course']['id']
        })
        assert own.status_code == 201

    def test_drop(self, client, seeded):
        registration = client.post("/api/registrations", headers=ADMIN, json={
            "studentId": seeded['student']['id'], "courseId": seeded['course']['id']
        }).json()
        response = client.delete(f"/api/registrations/{registration['id']}", headers=ADMIN)
        assert response.status_code == 204
        assert client.get("/api/registrations", headers=ADMIN).json() == []


class TestResultsAndSelfService:

    def test_record_result_unknown_course_is_404(self, client, seeded):
        response = client.post("/api/results", headers=ADMIN, json={
            "studentNumber": "STU001", "courseCode": "XX999", "grade": "A"
        })
        assert response.status_code == 404
        assert response.json()["error_code"] == "UNKNOWN_COURSE"

    def test_my_results_and_summary(self, client, seeded):
        client.post("/api/registrations", headers=ADMIN, json={
            "studentId": seeded['student']['id'], "courseId": seeded['course']['id']
        })
        created = client.post("/api/results", headers=ADMIN, json={
            "studentNumber": "STU001", "courseCode": "CS101", "grade": "B+"
        })
        assert created.status_code == 201
        assert created.json()["courseName"] == "Intro to CS"
        assert created.json()["tier"] == "good"

        headers = student_headers("STU001")
        [row] = client.get("/api/me/results", headers=headers).json()
        assert row["creditsLabel"] == "3"

        summary = client.get("/api/me/summary", headers=headers).json()
        assert summary["totalCredits"] == 3
        assert summary["completedCount"] == 1

    def test_other_students_summary_is_403(self, client, seeded):
        response = client.get("/api/students/STU001/summary", headers=student_headers("STU002"))
        assert response.status_code == 403

    def test_results_list_is_scoped(self, client, seeded):
        client.post("/api/results", headers=ADMIN, json={
            "studentNumber": "STU001", "courseCode": "CS101", "grade": "A"
        })
        assert len(client.get("/api/results", headers=ADMIN).json()) == 1
        assert client.get("/api/results", headers=student_headers("STU002")).json() == []

    def test_admin_overview_requires_admin(self, client, seeded):
        assert client.get("/api/admin/registrations", headers=student_headers("STU001")).status_code == 403
        assert client.get("/api/admin/registrations", headers=ADMIN).status_code == 200
