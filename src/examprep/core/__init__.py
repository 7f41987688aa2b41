"""Service layer.

Modules:
- content: universities and disciplines
- exams: exams, questions and bulk import
- users, badges, milestones, ranking: profiles and gamification
- challenge, study, simulation: quiz modes
- downloads, videos: study materials
- tracking, academic_ai, study_coach: performance tracking and analytics
- accounts: registration, login and account deletion
- content_cache, offline_store: cached and offline data
"""

__all__ = [
    "academic_ai",
    "accounts",
    "badges",
    "challenge",
    "content",
    "content_cache",
    "downloads",
    "exams",
    "milestones",
    "offline_store",
    "ranking",
    "simulation",
    "study",
    "study_coach",
    "tracking",
    "users",
    "videos",
]
