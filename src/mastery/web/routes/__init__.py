"""Route handlers for Web API."""

from mastery.web.routes.health import router as health_router
from mastery.web.routes.attempts import router as attempts_router
from mastery.web.routes.problems import router as problems_router

__all__ = [
    "health_router",
    "attempts_router",
    "problems_router",
]
