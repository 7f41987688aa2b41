"""Tests for the syllabus and course requirement endpoints."""

import pytest

from examprep.core import content


@pytest.fixture
def physics(university):
    return content.create_discipline("Physics", "atom", "red", university.id)


@pytest.fixture
def course_payload(university, discipline, physics):
    return {
        "course_name": "Engineering",
        "university_id": university.id,
        "disciplines": [
            {"discipline_id": discipline.id, "weight": 0.7},
            {"discipline_id": physics.id, "weight": 0.3},
        ],
        "minimum_score": 70,
    }


class TestTopics:
    def test_admin_creates_and_lists(self, client, admin_auth, discipline):
        _, headers = admin_auth

        response = client.post(
            "/api/syllabus/topics",
            headers=headers,
            json={"discipline_id": discipline.id, "topic_name": "Limits", "importance": 1},
        )

        assert response.status_code == 201
        assert response.json()["discipline_name"] == "Mathematics"
        listed = client.get("/api/syllabus/topics", params={"discipline_id": discipline.id}).json()
        assert [t["topic_name"] for t in listed] == ["Limits"]

    def test_writes_need_admin(self, client, auth, discipline):
        _, headers = auth

        response = client.post(
            "/api/syllabus/topics", headers=headers, json={"discipline_id": discipline.id, "topic_name": "Limits"}
        )

        assert response.status_code == 403

    def test_update_and_delete(self, client, admin_auth, discipline):
        _, headers = admin_auth
        topic = client.post(
            "/api/syllabus/topics", headers=headers, json={"discipline_id": discipline.id, "topic_name": "Limits"}
        ).json()

        updated = client.patch(f"/api/syllabus/topics/{topic['id']}", headers=headers, json={"importance": 2})
        assert updated.json()["importance"] == 2

        assert client.get(f"/api/syllabus/topics/{topic['id']}").json()["importance"] == 2

        assert client.delete(f"/api/syllabus/topics/{topic['id']}", headers=headers).status_code == 204
        assert client.get(f"/api/syllabus/topics/{topic['id']}").status_code == 404
        assert client.delete(f"/api/syllabus/topics/{topic['id']}", headers=headers).status_code == 404


class TestCourses:
    def test_create_and_fetch(self, client, admin_auth, course_payload):
        _, headers = admin_auth

        response = client.post("/api/syllabus/courses", headers=headers, json=course_payload)

        assert response.status_code == 201
        course = response.json()
        assert course["university_name"] == "University of Testing"
        assert client.get(f"/api/syllabus/courses/{course['id']}").json()["course_name"] == "Engineering"

    def test_weights_must_sum_to_one(self, client, admin_auth, course_payload):
        _, headers = admin_auth
        course_payload["disciplines"][1]["weight"] = 0.2

        response = client.post("/api/syllabus/courses", headers=headers, json=course_payload)

        assert response.status_code == 400

    def test_duplicate_name(self, client, admin_auth, course_payload):
        _, headers = admin_auth
        client.post("/api/syllabus/courses", headers=headers, json=course_payload)

        response = client.post("/api/syllabus/courses", headers=headers, json=course_payload)

        assert response.status_code == 409

    def test_writes_need_admin(self, client, auth, course_payload):
        _, headers = auth
        assert client.post("/api/syllabus/courses", headers=headers, json=course_payload).status_code == 403

    def test_delete(self, client, admin_auth, course_payload):
        _, headers = admin_auth
        course = client.post("/api/syllabus/courses", headers=headers, json=course_payload).json()

        assert client.delete(f"/api/syllabus/courses/{course['id']}", headers=headers).status_code == 204
        assert client.get(f"/api/syllabus/courses/{course['id']}").status_code == 404


class TestTargetCourse:
    def test_gaps_and_coverage_follow_target_course(self, client, admin_auth, auth, discipline, course_payload):
        _, admin_headers = admin_auth
        _, headers = auth
        client.post("/api/syllabus/courses", headers=admin_headers, json=course_payload)
        client.post(
            "/api/syllabus/topics",
            headers=admin_headers,
            json={"discipline_id": discipline.id, "topic_name": "Limits", "importance": 1},
        )

        client.put("/api/tracking/profile", headers=headers, json={"target_course": "Engineering"})

        gaps = client.get("/api/tracking/dashboard", headers=headers).json()["knowledge_gaps"]
        assert [g["topic_name"] for g in gaps] == ["Limits"]
        assert gaps[0]["priority"] == "high"

        coverage = client.get("/api/syllabus/coverage", headers=headers)
        assert coverage.status_code == 200
        assert [c["discipline_title"] for c in coverage.json()] == ["Mathematics", "Physics"]
        assert all(c["percentage"] == 0 for c in coverage.json())

    def test_coverage_requires_login(self, client):
        assert client.get("/api/syllabus/coverage").status_code == 401
