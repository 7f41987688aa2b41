"""Tests for the practice path endpoints."""

import pytest


@pytest.fixture
def admin_headers(admin_auth):
    return admin_auth[1]


@pytest.fixture
def step(client, admin_headers, discipline):
    """First step of a one-section path, with one 20 XP question (answer 1)."""
    section = client.post(
        "/api/practice/sections", headers=admin_headers, json={"discipline_id": discipline.id, "title": "Basics"}
    ).json()
    step = client.post(
        f"/api/practice/sections/{section['id']}/steps",
        headers=admin_headers,
        json={"title": "Limits", "content": "A limit describes..."},
    ).json()
    question = client.post(
        f"/api/practice/steps/{step['id']}/questions",
        headers=admin_headers,
        json={"statement": "lim x->0 of x?", "options": ["1", "0"], "correct_option": 1, "xp": 20},
    ).json()
    return {**step, "question_id": question["id"]}


class TestAdmin:
    def test_writes_need_admin(self, client, auth, discipline):
        _, headers = auth

        response = client.post(
            "/api/practice/sections", headers=headers, json={"discipline_id": discipline.id, "title": "Basics"}
        )

        assert response.status_code == 403

    def test_unknown_discipline(self, client, admin_headers):
        response = client.post(
            "/api/practice/sections", headers=admin_headers, json={"discipline_id": "ghost", "title": "Basics"}
        )

        assert response.status_code == 404

    def test_admin_sees_answer_keys(self, client, admin_headers, step):
        questions = client.get(f"/api/practice/steps/{step['id']}/questions", headers=admin_headers).json()

        assert questions[0]["correct_option"] == 1

    def test_invalid_correct_option(self, client, admin_headers, step):
        response = client.patch(
            f"/api/practice/questions/{step['question_id']}", headers=admin_headers, json={"correct_option": 5}
        )

        assert response.status_code == 400

    def test_delete_step(self, client, admin_headers, auth, step):
        _, headers = auth

        assert client.delete(f"/api/practice/steps/{step['id']}", headers=admin_headers).status_code == 204
        assert client.post(f"/api/practice/steps/{step['id']}/start", headers=headers).status_code == 404


class TestLearner:
    def test_path_lists_steps(self, client, auth, discipline, step):
        _, headers = auth

        response = client.get(f"/api/practice/disciplines/{discipline.id}/path", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_steps"] == 1
        assert data["sections"][0]["steps"][0]["locked"] is False

    def test_start_hides_answer_keys(self, client, auth, step):
        _, headers = auth

        response = client.post(f"/api/practice/steps/{step['id']}/start", headers=headers)

        assert response.status_code == 200
        assert response.json()["step"]["content"] == "A limit describes..."
        assert all("correct_option" not in q for q in response.json()["questions"])

    def test_submit_grants_xp(self, client, auth, step):
        _, headers = auth

        response = client.post(
            f"/api/practice/steps/{step['id']}/submit",
            headers=headers,
            json={"answers": {step["question_id"]: 1}, "time_spent": 5},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 100
        assert data["xp_earned"] == 20
        assert data["first_completion"] is True
        assert client.get("/api/auth/me", headers=headers).json()["xp"] == 20

    def test_requires_login(self, client, step):
        assert client.post(f"/api/practice/steps/{step['id']}/start").status_code == 401
