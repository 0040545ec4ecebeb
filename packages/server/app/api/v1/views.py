"""
Saved project views.

GET    /api/v1/projects/{projectId}/views
POST   /api/v1/projects/{projectId}/views
GET    /api/v1/project-views/{viewId}
PATCH  /api/v1/project-views/{viewId}
DELETE /api/v1/project-views/{viewId}
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_accessible_project, require_user
from app.core.database import get_session
from app.models.view import ProjectView
from app.services import views as view_service
from cohete_shared.schemas.views import ProjectViewCreate, ProjectViewRead, ProjectViewUpdate

router = APIRouter()


async def _get_view(session: AsyncSession, view_id: uuid.UUID, auth: AuthenticatedUser) -> ProjectView:
    view = await view_service.get_view_or_404(session, view_id)
    await get_accessible_project(view.project_id, auth, session)
    return view


@router.get("/projects/{project_id}/views", response_model=List[ProjectViewRead])
async def list_views(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await view_service.list_views(session, project.id)


@router.post("/projects/{project_id}/views", response_model=ProjectViewRead, status_code=201)
async def create_view(
    project_id: uuid.UUID,
    body: ProjectViewCreate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await view_service.create_view(session, project.id, body, auth)


@router.get("/project-views/{view_id}", response_model=ProjectViewRead)
async def get_view(
    view_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await _get_view(session, view_id, auth)


@router.patch("/project-views/{view_id}", response_model=ProjectViewRead)
async def update_view(
    view_id: uuid.UUID,
    body: ProjectViewUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    view = await _get_view(session, view_id, auth)
    return await view_service.update_view(session, view, body)


@router.delete("/project-views/{view_id}", status_code=204)
async def delete_view(
    view_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    view = await _get_view(session, view_id, auth)
    await view_service.delete_view(session, view)
