"""Tests for academic tracking endpoints."""

from examprep.db import tracking_repository

SESSION = {
    "score": 80,
    "questions_answered": 1,
    "correct_answers": 1,
    "time_spent": 10,
    "topics_studied": ["algebra"],
}


class TestDashboard:
    def test_empty_dashboard(self, client, auth):
        _, headers = auth

        response = client.get("/api/tracking/dashboard", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["profile"] is None
        assert data["analysis"] is None
        assert data["recommendations"] == []
        assert data["knowledge_gaps"] == []
        assert data["daily_goal"]["questions_to_solve"] == 10
        assert data["daily_goal"]["minutes_to_study"] == 30

    def test_profile_shows_after_update(self, client, auth):
        _, headers = auth
        client.get("/api/tracking/dashboard", headers=headers)

        response = client.put(
            "/api/tracking/profile",
            headers=headers,
            json={"target_course": "Medicine", "admission_exam_date": "2030-01-15"},
        )
        assert response.status_code == 200
        assert response.json()["target_course"] == "Medicine"

        dashboard = client.get("/api/tracking/dashboard", headers=headers).json()
        assert dashboard["profile"]["target_course"] == "Medicine"
        assert dashboard["analysis"]["overall_score"] == 0

    def test_requires_login(self, client):
        assert client.get("/api/tracking/dashboard").status_code == 401


class TestSessions:
    def test_first_session_unlocks_achievement(self, client, auth):
        _, headers = auth

        response = client.post("/api/tracking/sessions", headers=headers, json=SESSION)

        assert response.status_code == 200
        assert [a["title"] for a in response.json()["achievements"]] == ["First Question"]

        achievements = client.get("/api/tracking/achievements", headers=headers).json()
        assert [a["type"] for a in achievements] == ["questions_solved"]

        goal = client.get("/api/tracking/daily-goal", headers=headers).json()
        assert goal["questions_solved"] == 1
        assert goal["minutes_studied"] == 10

    def test_session_updates_profile(self, client, auth):
        user, headers = auth
        client.post("/api/tracking/sessions", headers=headers, json=SESSION)

        profile = client.get("/api/tracking/dashboard", headers=headers).json()["profile"]

        assert profile["total_questions_answered"] == 1
        assert profile["overall_accuracy"] == 100
        assert profile["current_streak"] == 1
        assert client.get("/api/auth/me", headers=headers).json()["streak"] == 1

    def test_score_out_of_range(self, client, auth):
        _, headers = auth
        response = client.post("/api/tracking/sessions", headers=headers, json={**SESSION, "score": 120})
        assert response.status_code == 422


class TestRecommendations:
    def test_refresh_without_profile_creates_nothing(self, client, auth):
        _, headers = auth

        response = client.post("/api/tracking/recommendations", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"created": 0}

    def test_complete_recommendation(self, client, auth):
        user, headers = auth
        tracking_repository.insert_recommendations(
            user.uid,
            [{"type": "practice", "priority": "high", "content_title": "Practice algebra", "reason": "Weak"}],
        )
        recommendation = tracking_repository.list_open_recommendations(user.uid)[0]

        response = client.post(
            f"/api/tracking/recommendations/{recommendation.id}/complete", headers=headers
        )

        assert response.status_code == 204
        assert tracking_repository.list_open_recommendations(user.uid) == []

    def test_complete_someone_elses_recommendation(self, client, make_account):
        owner, _ = make_account()
        _, headers = make_account()
        tracking_repository.insert_recommendations(
            owner.uid,
            [{"type": "practice", "priority": "low", "content_title": "Practice", "reason": "r"}],
        )
        recommendation = tracking_repository.list_open_recommendations(owner.uid)[0]

        response = client.post(
            f"/api/tracking/recommendations/{recommendation.id}/complete", headers=headers
        )

        assert response.status_code == 404
