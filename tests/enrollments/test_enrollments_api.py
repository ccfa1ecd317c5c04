"""Tests for enrollment endpoints."""

from uuid import uuid4

from fastapi.testclient import TestClient


class TestEnrollEndpoint:
    def test_requires_authentication(self, client: TestClient, free_course) -> None:
        response = client.post(f"/v1/courses/{free_course.id}/enroll")

        assert response.status_code == 401

    def test_free_course_enrolls(
        self, client: TestClient, auth_headers, student, free_course
    ) -> None:
        response = client.post(
            f"/v1/courses/{free_course.id}/enroll", headers=auth_headers(student)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "enrolled"
        assert data["already_enrolled"] is False
        assert data["checkout"] is None

    def test_repeat_is_idempotent(
        self, client: TestClient, auth_headers, student, free_course
    ) -> None:
        url = f"/v1/courses/{free_course.id}/enroll"
        client.post(url, headers=auth_headers(student))

        response = client.post(url, headers=auth_headers(student))

        assert response.status_code == 200
        assert response.json()["already_enrolled"] is True

    def test_paid_course_answers_409_with_checkout(
        self, client: TestClient, auth_headers, student, paid_course
    ) -> None:
        response = client.post(
            f"/v1/courses/{paid_course.id}/enroll", headers=auth_headers(student)
        )

        assert response.status_code == 409
        data = response.json()
        assert data["state"] == "payment_required"
        assert data["checkout"]["amount"] == 4999
        assert data["checkout"]["currency"] == "cad"
        assert data["checkout"]["checkout_path"] == f"/v1/courses/{paid_course.id}/checkout"

    def test_unknown_course_404(self, client: TestClient, auth_headers, student) -> None:
        response = client.post(f"/v1/courses/{uuid4()}/enroll", headers=auth_headers(student))

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestEnrollmentStateEndpoint:
    def test_state_changes_after_enroll(
        self, client: TestClient, auth_headers, student, free_course
    ) -> None:
        url = f"/v1/courses/{free_course.id}/enrollment"
        headers = auth_headers(student)

        assert client.get(url, headers=headers).json()["state"] == "not_enrolled"
        client.post(f"/v1/courses/{free_course.id}/enroll", headers=headers)
        assert client.get(url, headers=headers).json()["state"] == "enrolled"

    def test_my_courses(
        self, client: TestClient, auth_headers, student, free_course
    ) -> None:
        headers = auth_headers(student)
        client.post(f"/v1/courses/{free_course.id}/enroll", headers=headers)

        response = client.get("/v1/users/me/courses", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == str(free_course.id)
        assert data["items"][0]["is_free"] is True
