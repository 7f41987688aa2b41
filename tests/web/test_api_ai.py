"""Tests for the academic AI and simulation endpoints."""

from datetime import date, timedelta


class TestAcademicAI:
    """Analyses for a user without study history."""

    def test_prediction_needs_history(self, client, auth):
        _, headers = auth

        response = client.get("/api/ai/prediction", headers=headers)

        assert response.status_code == 200
        assert response.json()["data_quality"] == "insufficient"
        assert response.json()["days_analyzed"] == 0

    def test_plateau_without_history(self, client, auth):
        _, headers = auth

        data = client.get("/api/ai/plateau", headers=headers).json()

        assert data["is_in_plateau"] is False
        assert data["break_through_strategies"] == []

    def test_patterns_without_history(self, client, auth):
        _, headers = auth

        data = client.get("/api/ai/patterns", headers=headers).json()

        assert data["best_time_of_day"] == "Insufficient data"
        assert data["fatigue_point"] == 0

    def test_recommendations_without_profile(self, client, auth):
        _, headers = auth
        assert client.get("/api/ai/recommendations", headers=headers).json() == []

    def test_coach_falls_back_without_llm(self, client, auth):
        _, headers = auth

        data = client.get("/api/ai/coach", headers=headers).json()

        assert data["source"] == "fallback"
        assert data["text"]

    def test_scenarios_without_profile(self, client, auth):
        _, headers = auth

        response = client.post(
            "/api/ai/scenarios",
            headers=headers,
            json={"scenarios": [{"hours_per_day": 2, "days": 30}, {"hours_per_day": 6, "days": 10}]},
        )

        assert response.status_code == 200
        assert [s["feasibility"] for s in response.json()] == ["unrealistic", "unrealistic"]

    def test_scenarios_validated(self, client, auth):
        _, headers = auth

        response = client.post("/api/ai/scenarios", headers=headers, json={"scenarios": []})

        assert response.status_code == 422

    def test_schedule_without_gaps(self, client, auth):
        _, headers = auth
        target = (date.today() + timedelta(days=30)).isoformat()

        response = client.post(
            "/api/ai/schedule", headers=headers, json={"hours_per_day": 3, "target_date": target}
        )

        assert response.status_code == 200
        assert response.json()["schedule"] == []
        assert response.json()["total_study_hours"] == 0

    def test_requires_login(self, client):
        assert client.get("/api/ai/prediction").status_code == 401


class TestSimulations:
    @staticmethod
    def _generate(client, headers, **config):
        response = client.post("/api/simulations", headers=headers, json={"mode": "random", "question_count": 10, **config})
        assert response.status_code == 201
        return response.json()

    def test_generate_from_small_bank(self, client, auth, exam):
        _, headers = auth

        simulation = self._generate(client, headers)

        assert simulation["id"]
        assert len(simulation["questions"]) == 4
        assert all(q["previously_answered"] is False for q in simulation["questions"])

    def test_questions_carry_no_answer_key(self, client, auth, exam):
        _, headers = auth

        questions = self._generate(client, headers)["questions"]

        assert all("correct_option" not in q and "explanation" not in q for q in questions)

    def test_invalid_question_count(self, client, auth):
        _, headers = auth

        response = client.post("/api/simulations", headers=headers, json={"question_count": 15})

        assert response.status_code == 400

    def test_unknown_mode(self, client, auth):
        _, headers = auth

        response = client.post("/api/simulations", headers=headers, json={"mode": "lucky"})

        assert response.status_code == 400

    def test_results_graded_and_listed(self, client, auth, exam_questions):
        _, headers = auth
        simulation = self._generate(client, headers)
        answers = {q.id: q.correct_option for q in exam_questions}
        wrong = exam_questions[0]
        answers[wrong.id] = (wrong.correct_option + 1) % 4

        response = client.post(
            "/api/simulations/results",
            headers=headers,
            json={"simulation_id": simulation["id"], "answers": answers, "time_spent": 900},
        )

        assert response.status_code == 201
        assert response.json()["score"] == 75
        assert response.json()["correct_count"] == 3

        history = client.get("/api/simulations/history", headers=headers).json()
        assert [s["score"] for s in history] == [75]

    def test_unanswered_questions_count_as_wrong(self, client, auth, exam_questions):
        _, headers = auth
        simulation = self._generate(client, headers)
        first = exam_questions[0]

        response = client.post(
            "/api/simulations/results",
            headers=headers,
            json={"simulation_id": simulation["id"], "answers": {first.id: first.correct_option}},
        )

        assert response.json()["score"] == 25
        assert response.json()["total_questions"] == 4

    def test_results_unknown_question(self, client, auth, exam):
        _, headers = auth
        simulation = self._generate(client, headers)

        response = client.post(
            "/api/simulations/results",
            headers=headers,
            json={"simulation_id": simulation["id"], "answers": {"ghost": 0}},
        )

        assert response.status_code == 400

    def test_results_submitted_once(self, client, auth, exam):
        _, headers = auth
        payload = {"simulation_id": self._generate(client, headers)["id"], "answers": {}}

        assert client.post("/api/simulations/results", headers=headers, json=payload).status_code == 201
        assert client.post("/api/simulations/results", headers=headers, json=payload).status_code == 409

    def test_other_users_simulation(self, client, make_account, exam):
        _, owner = make_account()
        _, other = make_account()
        simulation = self._generate(client, owner)

        response = client.post(
            "/api/simulations/results", headers=other, json={"simulation_id": simulation["id"], "answers": {}}
        )

        assert response.status_code == 404

    def test_first_simulation_reaches_milestone(self, client, auth, exam_questions):
        _, headers = auth
        simulation = self._generate(client, headers)
        client.post(
            "/api/simulations/results",
            headers=headers,
            json={"simulation_id": simulation["id"], "answers": {exam_questions[0].id: 0}},
        )

        milestones = client.get("/api/users/me/milestones", headers=headers).json()

        assert {m["id"]: m["achieved"] for m in milestones}["sim_initiate"] is True
