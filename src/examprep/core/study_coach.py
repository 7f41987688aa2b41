"""Study coach: a short personalised study plan in plain language.

The coach turns the smart recommendations and the performance prediction
into a motivational plan. When the LLM is disabled in the config, or any
LLM call fails, the plan is assembled deterministically from the
recommendation titles instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import structlog

from examprep.config import load_app_config
from examprep.core import academic_ai
from examprep.core.academic_ai import PerformancePrediction, SmartRecommendation
from examprep.llm.client import LLMClient, LLMError

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = """You are a study coach for students preparing for university admission exams.
Write a short, encouraging study plan (at most 6 bullet points) based on the data you receive.
Be concrete: name the topics and the actions. Do not invent data that was not given."""


@dataclass
class CoachAdvice:
    text: str
    source: str  # llm | fallback
    recommendations: list[SmartRecommendation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "source": self.source,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def build_prompt(
    recommendations: list[SmartRecommendation],
    prediction: PerformancePrediction,
) -> str:
    lines = ["Recommendations (most important first):"]
    for rec in recommendations:
        lines.append(f"- [{rec.type}] {rec.title}: {rec.description} ({rec.reasoning})")
    if not recommendations:
        lines.append("- none yet")

    lines.append("")
    if prediction.data_quality == "insufficient":
        lines.append("Prediction: not enough study history yet.")
    else:
        lines.append(
            f"Predicted score in 30 days: {prediction.predicted_score}% "
            f"(confidence {prediction.confidence}%, trajectory {prediction.trajectory})."
        )
    if prediction.bottleneck:
        lines.append(f"Main bottleneck: {prediction.bottleneck}.")
    return "\n".join(lines)


def fallback_advice(recommendations: list[SmartRecommendation]) -> str:
    if not recommendations:
        return "Keep studying every day. Personalised advice appears after a few study sessions."
    lines = ["Your study plan:"]
    lines.extend(f"- {rec.title}: {rec.description}" for rec in recommendations)
    return "\n".join(lines)


def get_coach_advice(
    uid: str,
    client: LLMClient | None = None,
    now: datetime | None = None,
) -> CoachAdvice:
    """Personalised study advice for the user.

    Args:
        client: LLM client to use. Created from the config when None and
            the LLM is enabled.
    """
    recommendations = academic_ai.generate_smart_recommendations(uid, now=now)

    settings = load_app_config().llm
    if client is None and not settings.enabled:
        return CoachAdvice(fallback_advice(recommendations), "fallback", recommendations)

    prediction = academic_ai.predict_future_performance(uid, today=now.date() if now else None)
    prompt = build_prompt(recommendations, prediction)

    try:
        client = client or LLMClient(settings)
        text = client.simple_chat(SYSTEM_PROMPT, prompt)
    except LLMError as e:
        logger.warning("coach.llm_failed", uid=uid, error=str(e))
        return CoachAdvice(fallback_advice(recommendations), "fallback", recommendations)

    logger.info("coach.advice_generated", uid=uid, recommendations=len(recommendations))
    return CoachAdvice(text, "llm", recommendations)


def coach_status(client: LLMClient | None = None) -> dict[str, object]:
    """Whether the coach can reach its model. Disabled coaches are not contacted."""
    settings = load_app_config().llm
    if client is None and not settings.enabled:
        return {"enabled": False, "available": False, "provider": settings.provider}

    available = (client or LLMClient(settings)).is_available()
    if not available:
        logger.warning("coach.llm_unavailable", provider=settings.provider)
    return {"enabled": settings.enabled, "available": available, "provider": settings.provider}
