"""Tests for challenge, study and ranking endpoints."""

from datetime import timedelta

from examprep.db import exams_repository
from examprep.db.database import utc_now


def _play(client, headers, exam_id, answers):
    client.post(f"/api/challenges/{exam_id}/start", headers=headers)
    return client.post(f"/api/challenges/{exam_id}/submit", headers=headers, json={"answers": answers})


class TestChallenges:
    """Daily timed challenge flow."""

    def test_start_hides_answer_key(self, client, auth, exam):
        _, headers = auth

        response = client.post(f"/api/challenges/{exam.id}/start", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["exam"]["id"] == exam.id
        assert data["time_limit_minutes"] == 90
        assert len(data["questions"]) == 4
        assert "correct_option" not in data["questions"][0]

    def test_submit_grades_and_awards(self, client, auth, exam, answer_key):
        _, headers = auth

        response = _play(client, headers, exam.id, answer_key)

        assert response.status_code == 200
        data = response.json()
        assert data["correct_count"] == 4
        assert data["grade"] == 20
        assert data["percentage"] == 100
        assert data["xp_earned"] == 40
        assert data["timed_out"] is False
        assert "first_win" in data["new_badges"]
        assert all(o["is_correct"] for o in data["outcomes"])
        assert all("correct_option" not in o for o in data["outcomes"])

        me = client.get("/api/auth/me", headers=headers).json()
        assert me["challenges_completed"] == 1
        assert me["score"] == 3
        assert me["discipline_scores"] == {exam.discipline_id: 4}

    def test_unanswered_and_late(self, client, auth, exam):
        user, headers = auth
        client.post(f"/api/challenges/{exam.id}/start", headers=headers)
        started = (utc_now() - timedelta(minutes=91)).isoformat()
        exams_repository.save_challenge_start(user.uid, exam.id, started)

        response = client.post(
            f"/api/challenges/{exam.id}/submit",
            headers=headers,
            json={"answers": {}, "elapsed_seconds": 0},
        )

        data = response.json()
        assert data["correct_count"] == 0
        assert data["grade"] == 0
        assert data["timed_out"] is True
        assert data["elapsed_seconds"] >= 91 * 60

    def test_submit_without_start(self, client, auth, exam, answer_key):
        _, headers = auth

        response = client.post(
            f"/api/challenges/{exam.id}/submit", headers=headers, json={"answers": answer_key}
        )

        assert response.status_code == 400
        assert client.get("/api/auth/me", headers=headers).json()["challenges_completed"] == 0

    def test_free_user_limited_to_one_per_day(self, client, auth, exam, answer_key):
        _, headers = auth
        _play(client, headers, exam.id, answer_key)

        assert client.post(f"/api/challenges/{exam.id}/start", headers=headers).status_code == 429
        assert (
            client.post(f"/api/challenges/{exam.id}/submit", headers=headers, json={"answers": {}}).status_code
            == 429
        )

    def test_premium_user_plays_again(self, client, premium_auth, exam, answer_key):
        _, headers = premium_auth
        _play(client, headers, exam.id, answer_key)

        assert client.post(f"/api/challenges/{exam.id}/start", headers=headers).status_code == 200

    def test_unknown_exam(self, client, auth):
        _, headers = auth
        assert client.post("/api/challenges/ghost/start", headers=headers).status_code == 404

    def test_exam_without_questions(self, client, auth, make_exam):
        _, headers = auth
        empty = make_exam(count=0)

        assert client.post(f"/api/challenges/{empty.id}/start", headers=headers).status_code == 400

    def test_requires_login(self, client, exam):
        assert client.post(f"/api/challenges/{exam.id}/start").status_code == 401


class TestStudy:
    """Premium study mode."""

    def test_free_user_gets_payment_required(self, client, auth, exam):
        _, headers = auth
        assert client.post(f"/api/study/{exam.id}/start", headers=headers).status_code == 402

    def test_check_answer(self, client, premium_auth, exam_questions):
        _, headers = premium_auth
        question = exam_questions[1]

        response = client.post(
            f"/api/study/{question.exam_id}/check",
            headers=headers,
            json={"question_id": question.id, "selected_option": question.correct_option},
        )

        assert response.status_code == 200
        assert response.json() == {
            "question_id": question.id,
            "is_correct": True,
            "correct_option": question.correct_option,
            "explanation": "Because 1",
        }

    def test_check_question_of_other_exam(self, client, premium_auth, exam):
        _, headers = premium_auth

        response = client.post(
            f"/api/study/{exam.id}/check",
            headers=headers,
            json={"question_id": "ghost", "selected_option": 0},
        )

        assert response.status_code == 404

    def test_complete_session(self, client, premium_auth, exam):
        _, headers = premium_auth
        assert client.post(f"/api/study/{exam.id}/start", headers=headers).status_code == 200

        response = client.post(
            f"/api/study/{exam.id}/complete",
            headers=headers,
            json={"correct_count": 3, "total_questions": 4, "time_spent": 20},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["grade"] == 75
        assert data["average_grade"] == 75
        assert data["exams_completed"] == 1
        assert data["daily_exercises_count"] == 4

    def test_complete_inconsistent_counts(self, client, premium_auth, exam):
        _, headers = premium_auth

        response = client.post(
            f"/api/study/{exam.id}/complete",
            headers=headers,
            json={"correct_count": 5, "total_questions": 4},
        )

        assert response.status_code == 400


class TestRankings:
    def test_players_without_score_left_out(self, client, make_account, exam, answer_key):
        player, headers = make_account()
        make_account()
        _play(client, headers, exam.id, answer_key)

        response = client.get("/api/rankings")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["entries"][0]["uid"] == player.uid
        assert data["entries"][0]["position"] == 1

    def test_by_discipline(self, client, auth, exam, answer_key):
        player, headers = auth
        _play(client, headers, exam.id, answer_key)

        response = client.get("/api/rankings", params={"discipline_id": exam.discipline_id})

        assert response.json()["entries"][0]["score"] == 4

    def test_discipline_outside_university(self, client, discipline):
        response = client.get(
            "/api/rankings", params={"discipline_id": discipline.id, "university_id": "other"}
        )
        assert response.status_code == 400
