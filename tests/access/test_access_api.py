"""Tests for gated course content endpoints."""

from fastapi.testclient import TestClient


class TestCourseDetail:
    def test_anonymous_public_view(self, client: TestClient, paid_course) -> None:
        response = client.get(f"/v1/courses/{paid_course.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == paid_course.title
        assert data["is_enrolled"] is False
        assert data["videos"] == []
        assert data["pdf_url"] is None

    def test_invalid_token_treated_as_anonymous(self, client: TestClient, paid_course) -> None:
        response = client.get(
            f"/v1/courses/{paid_course.id}",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 200
        assert response.json()["videos"] == []

    def test_member_sees_videos(
        self, client: TestClient, auth_headers, student, free_course
    ) -> None:
        headers = auth_headers(student)
        client.post(f"/v1/courses/{free_course.id}/enroll", headers=headers)

        response = client.get(f"/v1/courses/{free_course.id}", headers=headers)

        data = response.json()
        assert data["is_enrolled"] is True
        assert data["videos"][0]["url"] == free_course.videos[0].url
        assert data["pdf_url"] == free_course.pdf_url


class TestCourseVideos:
    def test_non_member_forbidden(
        self, client: TestClient, auth_headers, student, paid_course
    ) -> None:
        response = client.get(
            f"/v1/courses/{paid_course.id}/videos", headers=auth_headers(student)
        )

        assert response.status_code == 403
        assert response.json()["code"] == "authorization_error"

    def test_requires_authentication(self, client: TestClient, paid_course) -> None:
        response = client.get(f"/v1/courses/{paid_course.id}/videos")

        assert response.status_code == 401

    def test_member_allowed(
        self, client: TestClient, auth_headers, student, free_course
    ) -> None:
        headers = auth_headers(student)
        client.post(f"/v1/courses/{free_course.id}/enroll", headers=headers)

        response = client.get(f"/v1/courses/{free_course.id}/videos", headers=headers)

        assert response.status_code == 200
        assert len(response.json()["videos"]) == 1
