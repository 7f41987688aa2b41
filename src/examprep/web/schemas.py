"""Pydantic schemas for the web API.

Response models read attributes straight from the repository and service
dataclasses (from_attributes).
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from examprep import __version__


class ORMModel(BaseModel):
    model_config = {"from_attributes": True}


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = __version__
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class CoachStatusResponse(BaseModel):
    enabled: bool
    available: bool
    provider: str


# =============================================================================
# AUTH AND USERS
# =============================================================================


class RegisterRequest(BaseModel):
    email: str = Field(..., max_length=200)
    password: str = Field(..., min_length=6, max_length=200)
    display_name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(ORMModel):
    """A user profile."""

    uid: str
    email: str
    display_name: str
    role: str
    photo_url: str | None = None
    streak: int
    is_premium: bool
    premium_until: str | None = None
    last_study_date: str | None = None
    last_exam_date: str | None = None
    last_challenge_date: str | None = None
    daily_exercises_count: int
    exams_completed: int
    challenges_completed: int
    average_grade: int
    score: int
    xp: int
    level: int
    badges: list[str]
    discipline_scores: dict[str, int]
    study_plan: dict[str, Any] | None = None
    data_saver_mode: bool
    last_active: str | None = None
    created_at: str


class UserListResponse(BaseModel):
    users: list[UserResponse]
    count: int


class UserUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    display_name: str | None = Field(default=None, min_length=1, max_length=100)
    photo_url: str | None = None
    data_saver_mode: bool | None = None
    study_plan: dict[str, Any] | None = None


class PremiumUpdate(BaseModel):
    is_premium: bool
    premium_until: str | None = None


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_at: str
    user: UserResponse


class ActivityResponse(ORMModel):
    id: str
    activity_type: str
    title: str
    score: int
    xp_earned: int
    created_at: str


class BadgeResponse(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    earned: bool


class MilestoneResponse(BaseModel):
    id: str
    category: str
    name: str
    description: str
    icon: str
    progress: int
    achieved: bool


# =============================================================================
# CONTENT
# =============================================================================


class UniversityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    short_name: str = Field(..., min_length=1, max_length=20)
    is_active: bool = True


class UniversityUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    short_name: str | None = Field(default=None, min_length=1, max_length=20)
    is_active: bool | None = None


class UniversityResponse(ORMModel):
    id: str
    name: str
    short_name: str
    is_active: bool
    created_at: str


class DisciplineCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    icon: str = "book"
    color: str = "blue"
    university_id: str | None = None
    is_active: bool = True


class DisciplineUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    icon: str | None = None
    color: str | None = None
    university_id: str | None = None
    is_active: bool | None = None


class DisciplineResponse(ORMModel):
    id: str
    title: str
    icon: str
    color: str
    university_id: str | None
    university_name: str | None
    is_active: bool
    created_at: str


# =============================================================================
# EXAMS AND QUESTIONS
# =============================================================================


class ExamCreate(BaseModel):
    discipline_id: str
    name: str = Field(..., min_length=1, max_length=200)
    year: int = Field(..., ge=1900, le=2100)
    season: str = ""
    description: str | None = None
    university: str | None = None
    is_active: bool = True


class ExamUpdate(BaseModel):
    discipline_id: str | None = None
    name: str | None = Field(default=None, min_length=1, max_length=200)
    year: int | None = Field(default=None, ge=1900, le=2100)
    season: str | None = None
    description: str | None = None
    university: str | None = None
    is_active: bool | None = None


class ExamResponse(ORMModel):
    id: str
    discipline_id: str
    name: str
    year: int
    season: str
    questions_count: int
    description: str | None
    university: str | None
    is_active: bool
    created_at: str


class QuestionCreate(BaseModel):
    statement: str = Field(..., min_length=1)
    options: list[str]
    correct_option: int = Field(..., ge=0)
    explanation: str | None = None
    difficulty: int | None = Field(default=None, ge=1, le=5)
    order_index: int | None = None
    discipline_id: str | None = None


class QuestionUpdate(BaseModel):
    statement: str | None = Field(default=None, min_length=1)
    options: list[str] | None = None
    correct_option: int | None = Field(default=None, ge=0)
    explanation: str | None = None
    difficulty: int | None = Field(default=None, ge=1, le=5)
    order_index: int | None = None


class QuestionResponse(ORMModel):
    """Full question including the answer key (admin views)."""

    id: str
    exam_id: str
    statement: str
    options: list[str]
    correct_option: int
    discipline_id: str | None = None
    explanation: str | None = None
    difficulty: int | None = None
    order_index: int


class PublicQuestionResponse(ORMModel):
    """Question without the answer key."""

    id: str
    statement: str
    options: list[str]
    order_index: int


class BulkImportRequest(BaseModel):
    questions: list[QuestionCreate]


class BulkImportResponse(BaseModel):
    exam_id: str
    imported: int


# =============================================================================
# CHALLENGE AND STUDY
# =============================================================================


class ChallengeStartResponse(ORMModel):
    exam: ExamResponse
    questions: list[PublicQuestionResponse]
    time_limit_minutes: int
    started_at: str


class ChallengeSubmitRequest(BaseModel):
    answers: dict[str, int] = Field(default_factory=dict)


class QuestionOutcomeResponse(ORMModel):
    question_id: str
    selected_option: int | None
    is_correct: bool


class ChallengeResultResponse(ORMModel):
    exam_id: str
    correct_count: int
    total_questions: int
    accuracy: float
    grade: int
    percentage: int
    xp_earned: int
    elapsed_seconds: int
    timed_out: bool
    new_badges: list[str]
    outcomes: list[QuestionOutcomeResponse]


class StudyStartResponse(ORMModel):
    exam: ExamResponse
    questions: list[PublicQuestionResponse]


class AnswerCheckRequest(BaseModel):
    question_id: str
    selected_option: int = Field(..., ge=0)


class AnswerFeedbackResponse(ORMModel):
    question_id: str
    is_correct: bool
    correct_option: int
    explanation: str | None


class StudyCompleteRequest(BaseModel):
    correct_count: int = Field(..., ge=0)
    total_questions: int = Field(..., gt=0)
    time_spent: int = Field(default=0, ge=0)


class StudyCompletionResponse(ORMModel):
    grade: int
    average_grade: int
    exams_completed: int
    daily_exercises_count: int
    achievements: list[str]


# =============================================================================
# RANKING
# =============================================================================


class RankingEntryResponse(ORMModel):
    position: int
    uid: str
    display_name: str
    photo_url: str | None
    score: int
    level: int
    badges: list[str]


class RankingResponse(BaseModel):
    entries: list[RankingEntryResponse]
    count: int


# =============================================================================
# DOWNLOADS AND VIDEOS
# =============================================================================


class DownloadCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    file_url: str = Field(..., min_length=1)
    description: str = ""
    file_size: str | None = None
    type: str = "other"
    discipline_id: str | None = None
    university_id: str | None = None
    year: int | None = None
    is_premium: bool = False


class DownloadUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    file_url: str | None = Field(default=None, min_length=1)
    description: str | None = None
    file_size: str | None = None
    type: str | None = None
    discipline_id: str | None = None
    university_id: str | None = None
    year: int | None = None
    is_premium: bool | None = None


class DownloadResponse(ORMModel):
    id: str
    title: str
    description: str
    file_url: str
    file_size: str | None
    type: str
    discipline_id: str | None
    discipline_name: str | None
    university_id: str | None
    university_name: str | None
    year: int | None
    is_premium: bool
    download_count: int
    created_at: str


class DownloadLinkResponse(BaseModel):
    file_url: str


class VideoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    youtube_url: str
    description: str = ""
    duration: int = Field(default=0, ge=0)
    discipline_id: str | None = None
    subject: str | None = None
    order_index: int = 0


class VideoUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    youtube_url: str | None = None
    description: str | None = None
    duration: int | None = Field(default=None, ge=0)
    discipline_id: str | None = None
    subject: str | None = None
    order_index: int | None = None


class VideoResponse(ORMModel):
    id: str
    title: str
    description: str
    youtube_url: str
    youtube_id: str
    thumbnail_url: str
    duration: int
    discipline_id: str | None
    subject: str | None
    order_index: int
    created_at: str


class VideoPageResponse(BaseModel):
    videos: list[VideoResponse]
    next_cursor: str | None


# =============================================================================
# TRACKING
# =============================================================================


class StudySessionRequest(BaseModel):
    discipline_id: str | None = None
    score: float = Field(..., ge=0, le=100)
    questions_answered: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    time_spent: int = Field(default=0, ge=0)
    topics_studied: list[str] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    target_university: str | None = None
    target_course: str | None = None
    target_year: int | None = None
    admission_exam_date: str | None = None


class AcademicProfileResponse(ORMModel):
    user_id: str
    target_university: str
    target_course: str
    target_year: int | None
    admission_exam_date: str | None
    mastered_topics: list[str]
    weak_topics: list[str]
    total_study_time: int
    total_questions_answered: int
    overall_accuracy: float
    current_streak: int
    longest_streak: int
    last_updated: str


class DailyGoalResponse(ORMModel):
    user_id: str
    goal_date: str
    questions_to_solve: int
    minutes_to_study: int
    topics_to_review: list[str]
    questions_solved: int
    minutes_studied: int
    completion_rate: int
    is_completed: bool


class RecommendationResponse(ORMModel):
    id: str
    type: str
    priority: str
    content_id: str | None
    content_type: str | None
    content_title: str
    topic_id: str | None
    estimated_time: int
    difficulty: int
    reason: str
    expected_impact: float
    created_at: str


class AchievementResponse(ORMModel):
    id: str
    type: str
    title: str
    description: str
    icon: str
    unlocked_at: str


class SessionRecordedResponse(BaseModel):
    achievements: list[AchievementResponse]


class DashboardResponse(BaseModel):
    profile: AcademicProfileResponse | None
    analysis: dict[str, Any] | None
    recommendations: list[RecommendationResponse]
    daily_goal: DailyGoalResponse
    knowledge_gaps: list[dict[str, Any]]


# =============================================================================
# ACADEMIC AI
# =============================================================================


class PredictionResponse(ORMModel):
    predicted_score: int
    confidence: int
    trajectory: str
    bottleneck: str | None
    days_analyzed: int
    data_quality: str


class PlateauResponse(ORMModel):
    is_in_plateau: bool
    plateau_duration: int
    last_significant_improvement: str | None
    suggested_action: str
    break_through_strategies: list[str]
    plateau_severity: str


class StudyPatternResponse(ORMModel):
    best_time_of_day: str
    best_day_of_week: str
    avg_session_length: int
    optimal_session_length: int
    fatigue_point: int
    insights: list[str]


class SmartRecommendationResponse(ORMModel):
    id: str
    type: str
    title: str
    description: str
    reasoning: str
    priority: int
    estimated_impact: int
    confidence: int


class CoachResponse(ORMModel):
    text: str
    source: str
    recommendations: list[SmartRecommendationResponse]


class ScenarioItem(BaseModel):
    hours_per_day: float = Field(..., gt=0, le=24)
    days: int = Field(..., gt=0, le=365)


class ScenarioRequest(BaseModel):
    scenarios: list[ScenarioItem] = Field(..., min_length=1, max_length=10)


class ScenarioResponse(ORMModel):
    scenario: str
    estimated_score: int
    estimated_admission_chance: int
    recommendation: str
    feasibility: str


class ScheduleRequest(BaseModel):
    hours_per_day: float = Field(..., gt=0, le=16)
    target_date: date


class ScheduledSessionResponse(ORMModel):
    time: str
    topic_id: str
    topic_name: str
    duration: int
    expected_gain: int
    priority: str


class DailyScheduleResponse(ORMModel):
    day: str
    date: str
    sessions: list[ScheduledSessionResponse]


class ScheduleResponse(ORMModel):
    schedule: list[DailyScheduleResponse]
    expected_final_score: int
    weaknesses_addressed: int
    total_study_hours: int


# =============================================================================
# SIMULATIONS
# =============================================================================


class SimulationConfigRequest(BaseModel):
    mode: str = "random"
    question_count: int = 20
    discipline_ids: list[str] = Field(default_factory=list)
    university: str | None = None
    time_limit: int | None = Field(default=None, gt=0)


class SimulationQuestionResponse(ORMModel):
    """Simulation question without the answer key."""

    id: str
    exam_id: str
    discipline_id: str | None
    statement: str
    options: list[str]
    difficulty: int | None
    previously_answered: bool
    previously_correct: bool


class GeneratedSimulationResponse(ORMModel):
    id: str
    questions: list[SimulationQuestionResponse]
    started_at: str


class SimulationResultRequest(BaseModel):
    simulation_id: str
    answers: dict[str, int] = Field(default_factory=dict)
    time_spent: int = Field(default=0, ge=0)


class SimulationResponse(ORMModel):
    id: str
    config: dict[str, Any]
    score: int
    correct_count: int
    total_questions: int
    time_spent: int
    answers: dict[str, int]
    created_at: str


# =============================================================================
# SYLLABUS
# =============================================================================


class SyllabusTopicCreate(BaseModel):
    discipline_id: str
    topic_name: str = Field(..., min_length=1, max_length=200)
    importance: int = Field(default=3, ge=1, le=5)
    estimated_hours: float = Field(default=1.0, gt=0)
    order_index: int = 0
    subtopics: list[str] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    description: str | None = None
    university_id: str | None = None
    course_name: str | None = None


class SyllabusTopicUpdate(BaseModel):
    topic_name: str | None = Field(default=None, min_length=1, max_length=200)
    importance: int | None = Field(default=None, ge=1, le=5)
    estimated_hours: float | None = Field(default=None, gt=0)
    order_index: int | None = None
    subtopics: list[str] | None = None
    prerequisites: list[str] | None = None
    description: str | None = None


class SyllabusTopicResponse(ORMModel):
    id: str
    discipline_id: str
    discipline_name: str
    topic_name: str
    importance: int
    estimated_hours: float
    order_index: int
    subtopics: list[str]
    prerequisites: list[str]
    description: str | None = None
    university_id: str | None = None
    course_name: str | None = None


class CourseDiscipline(BaseModel):
    discipline_id: str
    weight: float = Field(..., gt=0, le=1)
    is_required: bool = True


class CourseCreate(BaseModel):
    course_name: str = Field(..., min_length=1, max_length=200)
    university_id: str
    disciplines: list[CourseDiscipline] = Field(..., min_length=1)
    minimum_score: float = Field(default=0, ge=0)
    estimated_study_hours: float = Field(default=0, ge=0)


class CourseUpdate(BaseModel):
    course_name: str | None = Field(default=None, min_length=1, max_length=200)
    university_id: str | None = None
    disciplines: list[CourseDiscipline] | None = Field(default=None, min_length=1)
    minimum_score: float | None = Field(default=None, ge=0)
    estimated_study_hours: float | None = Field(default=None, ge=0)


class CourseResponse(ORMModel):
    id: str
    course_name: str
    disciplines: list[dict[str, Any]]
    minimum_score: float
    estimated_study_hours: float
    university_id: str | None = None
    university_name: str | None = None


class CoverageResponse(ORMModel):
    discipline_id: str
    discipline_title: str
    total_steps: int
    completed_steps: int
    percentage: int


# =============================================================================
# PRACTICE PATH
# =============================================================================


class SectionCreate(BaseModel):
    discipline_id: str
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    order_index: int = 0
    is_active: bool = True


class SectionUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    order_index: int | None = None
    is_active: bool | None = None


class SectionResponse(ORMModel):
    id: str
    discipline_id: str
    title: str
    description: str
    order_index: int
    is_active: bool


class StepCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    content: str = ""
    topic_id: str | None = None
    order_index: int = 0
    is_active: bool = True


class StepUpdate(BaseModel):
    section_id: str | None = None
    topic_id: str | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    content: str | None = None
    order_index: int | None = None
    is_active: bool | None = None


class StepResponse(ORMModel):
    id: str
    section_id: str | None
    topic_id: str | None
    title: str
    description: str
    content: str
    order_index: int
    is_active: bool


class PracticeQuestionCreate(BaseModel):
    statement: str = Field(..., min_length=1)
    options: list[str]
    correct_option: int = Field(..., ge=0)
    explanation: str | None = None
    xp: int = Field(default=10, gt=0)
    order_index: int = 0


class PracticeQuestionUpdate(BaseModel):
    statement: str | None = Field(default=None, min_length=1)
    options: list[str] | None = None
    correct_option: int | None = Field(default=None, ge=0)
    explanation: str | None = None
    xp: int | None = Field(default=None, gt=0)
    order_index: int | None = None


class PracticeQuestionResponse(ORMModel):
    """Practice question with its answer key (admin views)."""

    id: str
    step_id: str
    statement: str
    options: list[str]
    correct_option: int
    explanation: str | None = None
    xp: int
    order_index: int


class PublicPracticeQuestionResponse(ORMModel):
    id: str
    statement: str
    options: list[str]
    xp: int


class StepSessionResponse(ORMModel):
    step: StepResponse
    questions: list[PublicPracticeQuestionResponse]


class StepSubmitRequest(BaseModel):
    answers: dict[str, int] = Field(default_factory=dict)
    time_spent: int = Field(default=0, ge=0)


class PracticeOutcomeResponse(ORMModel):
    question_id: str
    selected_option: int | None
    is_correct: bool


class StepResultResponse(ORMModel):
    step_id: str
    correct_count: int
    total_questions: int
    score: int
    best_score: int
    xp_earned: int
    first_completion: bool
    new_badges: list[str]
    outcomes: list[PracticeOutcomeResponse]


class PathStepResponse(ORMModel):
    id: str
    title: str
    description: str
    topic_id: str | None
    position: int
    completed: bool
    best_score: int
    locked: bool
    premium_only: bool


class PathSectionResponse(ORMModel):
    id: str
    title: str
    description: str
    steps: list[PathStepResponse]


class PracticePathResponse(ORMModel):
    discipline_id: str
    discipline_title: str
    completed_steps: int
    total_steps: int
    sections: list[PathSectionResponse]
