"""Tests for the study coach."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from examprep.core import study_coach, tracking
from examprep.core.academic_ai import PerformancePrediction, SmartRecommendation
from examprep.db import tracking_repository
from examprep.llm.client import LLMConnectionError

NOW = datetime(2024, 5, 10, 18, 0, tzinfo=timezone.utc)


def _rec(title="Spaced review", description="Algebra needs a review"):
    return SmartRecommendation(
        id="r1",
        type="review",
        title=title,
        description=description,
        reasoning="Last studied 10 days ago",
        priority=9,
        estimated_impact=15,
        confidence=95,
    )


def _prediction(quality="fair", bottleneck=None):
    return PerformancePrediction(
        predicted_score=72,
        confidence=80,
        trajectory="steady",
        bottleneck=bottleneck,
        days_analyzed=12,
        data_quality=quality,
    )


class TestBuildPrompt:
    def test_lists_recommendations_and_prediction(self):
        prompt = study_coach.build_prompt([_rec()], _prediction(bottleneck="Geometry"))

        assert "- [review] Spaced review: Algebra needs a review" in prompt
        assert "Predicted score in 30 days: 72%" in prompt
        assert "Main bottleneck: Geometry." in prompt

    def test_without_data(self):
        prompt = study_coach.build_prompt([], _prediction(quality="insufficient"))

        assert "- none yet" in prompt
        assert "not enough study history" in prompt


class TestFallbackAdvice:
    def test_empty(self):
        assert "Keep studying" in study_coach.fallback_advice([])

    def test_lists_titles(self):
        text = study_coach.fallback_advice([_rec()])
        assert text.splitlines() == ["Your study plan:", "- Spaced review: Algebra needs a review"]


class TestGetCoachAdvice:
    def test_llm_disabled_uses_fallback(self, user):
        advice = study_coach.get_coach_advice(user.uid, now=NOW)

        assert advice.source == "fallback"
        assert advice.recommendations == []

    def test_llm_answer(self, user):
        topic = tracking_repository.insert_syllabus_topic("maths", "Algebra")
        tracking.upsert_profile(user.uid)
        tracking_repository.upsert_topic_progress(
            user.uid, topic.id, 75.0, 8, 6, 30, status="completed", studied_at="2024-04-20T10:00:00+00:00"
        )
        client = MagicMock()
        client.simple_chat.return_value = "- Review Algebra tonight"

        advice = study_coach.get_coach_advice(user.uid, client=client, now=NOW)

        assert advice.source == "llm"
        assert advice.text == "- Review Algebra tonight"
        system_prompt, prompt = client.simple_chat.call_args.args
        assert system_prompt == study_coach.SYSTEM_PROMPT
        assert "Algebra needs a review" in prompt

    def test_llm_failure_falls_back(self, user):
        client = MagicMock()
        client.simple_chat.side_effect = LLMConnectionError("down")

        advice = study_coach.get_coach_advice(user.uid, client=client, now=NOW)

        assert advice.source == "fallback"
        assert advice.to_dict()["text"].startswith("Keep studying")


class TestCoachStatus:
    def test_disabled_coach_not_contacted(self):
        status = study_coach.coach_status()

        assert status["enabled"] is False
        assert status["available"] is False

    def test_reports_model_reachability(self):
        client = MagicMock()
        client.is_available.return_value = True
        assert study_coach.coach_status(client)["available"] is True

        client.is_available.return_value = False
        assert study_coach.coach_status(client)["available"] is False
