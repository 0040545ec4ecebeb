"""
API v1 Router

Project-scoped resources live under /projects/{project_id}; entity-level
routes (tasks, schedules, products, views, rules) are addressed by their own id.
"""

from fastapi import APIRouter
from . import (
    automations,
    chat,
    documents,
    notifications,
    products,
    projects,
    schedules,
    settings,
    tasks,
    teams,
    users,
    views,
)

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(users.admin_router, prefix="/admin/users", tags=["Admin"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(documents.router, prefix="/projects/{project_id}/documents", tags=["Documents"])

# Routers that span several roots (e.g. /projects/{id}/tasks and /tasks/{id})
router.include_router(schedules.router, tags=["Schedules"])
router.include_router(tasks.router, tags=["Tasks"])
router.include_router(products.router, tags=["Products"])
router.include_router(views.router, tags=["Views"])
router.include_router(automations.router, tags=["Automations"])
router.include_router(chat.router, tags=["Chat"])

router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(teams.router, prefix="/teams", tags=["Teams"])
router.include_router(settings.router, prefix="/settings", tags=["Settings"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/auth",
            "/users",
            "/admin/users",
            "/projects",
            "/projects/{project_id}/documents",
            "/projects/{project_id}/schedules",
            "/projects/{project_id}/tasks",
            "/projects/{project_id}/products",
            "/projects/{project_id}/views",
            "/projects/{project_id}/automation-rules",
            "/schedules",
            "/schedule-entries",
            "/tasks",
            "/products",
            "/project-views",
            "/automation-rules",
            "/chat",
            "/notifications",
            "/teams",
            "/settings",
        ],
    }
