from .auth import router as auth_router
from .users import router as users_router
from .teams import router as teams_router
from .tasks import router as tasks_router
from .dashboard import router as dashboard_router
from .search import router as search_router
from .gitlab import router as gitlab_router

__all__ = [
    "auth_router",
    "users_router",
    "teams_router",
    "tasks_router",
    "dashboard_router",
    "search_router",
    "gitlab_router"
]
