"""Route handlers for the Web API."""

from examprep.web.routes.ai import router as ai_router
from examprep.web.routes.auth import router as auth_router
from examprep.web.routes.challenges import router as challenges_router
from examprep.web.routes.disciplines import router as disciplines_router
from examprep.web.routes.downloads import router as downloads_router
from examprep.web.routes.exams import router as exams_router
from examprep.web.routes.health import router as health_router
from examprep.web.routes.practice import router as practice_router
from examprep.web.routes.questions import router as questions_router
from examprep.web.routes.rankings import router as rankings_router
from examprep.web.routes.simulations import router as simulations_router
from examprep.web.routes.study import router as study_router
from examprep.web.routes.syllabus import router as syllabus_router
from examprep.web.routes.tracking import router as tracking_router
from examprep.web.routes.universities import router as universities_router
from examprep.web.routes.users import router as users_router
from examprep.web.routes.videos import router as videos_router

__all__ = [
    "ai_router",
    "auth_router",
    "challenges_router",
    "disciplines_router",
    "downloads_router",
    "exams_router",
    "health_router",
    "practice_router",
    "questions_router",
    "rankings_router",
    "simulations_router",
    "study_router",
    "syllabus_router",
    "tracking_router",
    "universities_router",
    "users_router",
    "videos_router",
]
