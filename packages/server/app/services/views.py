"""
Project view service. At most one view per project is the default;
marking a view as default clears the flag on the others.
"""

from __future__ import annotations

import uuid

from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.view import ProjectView
from cohete_shared.schemas.views import ProjectViewCreate, ProjectViewUpdate


async def get_view_or_404(session: AsyncSession, view_id: uuid.UUID) -> ProjectView:
    view = await session.get(ProjectView, view_id)
    if not view:
        raise HTTPException(status_code=404, detail="View not found")
    return view


async def list_views(session: AsyncSession, project_id: uuid.UUID) -> list[ProjectView]:
    """Default view first, then by name."""
    result = await session.execute(
        select(ProjectView)
        .where(ProjectView.project_id == project_id)
        .order_by(ProjectView.is_default.desc(), ProjectView.name)
    )
    return list(result.scalars().all())


async def _clear_default(session: AsyncSession, project_id: uuid.UUID, keep_id: uuid.UUID) -> None:
    await session.execute(
        update(ProjectView)
        .where(ProjectView.project_id == project_id, ProjectView.id != keep_id)
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )


async def create_view(
    session: AsyncSession, project_id: uuid.UUID, req: ProjectViewCreate, auth: AuthenticatedUser
) -> ProjectView:
    view = ProjectView(project_id=project_id, created_by=auth.user_id, **req.model_dump(mode="json"))
    if view.is_default:
        await _clear_default(session, project_id, view.id)
    session.add(view)
    await session.flush()
    return view


async def update_view(session: AsyncSession, view: ProjectView, req: ProjectViewUpdate) -> ProjectView:
    data = req.model_dump(mode="json", exclude_unset=True)
    # Clear the old default before this row is flushed as the new one
    if data.get("is_default"):
        await _clear_default(session, view.project_id, view.id)
    for key, value in data.items():
        setattr(view, key, value)
    session.add(view)
    await session.flush()
    return view


async def delete_view(session: AsyncSession, view: ProjectView) -> None:
    await session.delete(view)
    await session.flush()
