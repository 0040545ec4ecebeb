"""
Task endpoints: CRUD, subtasks, comments, attachments, dependencies, time
tracking and AI-suggested task lists.

Groups (board order): todo → in_progress → blocked → upcoming → completed
- Completing a task stamps completed_at and sets progress to 100.
- Circular dependency detection on add (BFS over the project's edges).
- Assignment and comment notifications for the assignee.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.client import AIClient, get_ai_client
from app.core.auth import (
    AuthenticatedUser,
    get_accessible_project,
    has_project_access,
    require_user,
)
from app.core.database import get_session
from app.models.project import Project
from app.models.task import Task
from app.services import tasks as task_service
from cohete_shared.schemas.common import TaskGroup, TaskStatus
from cohete_shared.schemas.tasks import (
    AttachmentRead,
    CommentCreate,
    CommentRead,
    DependencyAdd,
    DependencyRead,
    TaskCreate,
    TaskRead,
    TaskUpdate,
    TimeEntryCreate,
    TimeEntryRead,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _get_task(session: AsyncSession, task_id: uuid.UUID, auth: AuthenticatedUser) -> Task:
    """Fetch a task and enforce access to its project."""
    task = await task_service.get_task_or_404(session, task_id)
    await get_accessible_project(task.project_id, auth, session)
    return task


# ---------------------------------------------------------------------------
# Project tasks
# ---------------------------------------------------------------------------


@router.get("/projects/{project_id}/tasks", response_model=List[TaskRead])
async def list_project_tasks(
    project_id: uuid.UUID,
    status: Optional[TaskStatus] = None,
    group: Optional[TaskGroup] = None,
    assigned_to_id: Optional[uuid.UUID] = None,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Top-level tasks of a project, ordered by board group then position."""
    project = await get_accessible_project(project_id, auth, session)
    return await task_service.list_tasks(session, project.id, status, group, assigned_to_id)


@router.post("/projects/{project_id}/tasks", response_model=TaskRead, status_code=201)
async def create_project_task(
    project_id: uuid.UUID,
    body: TaskCreate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await task_service.create_task(session, project.id, body, auth)


@router.post(
    "/projects/{project_id}/generate-tasks", response_model=List[TaskRead], status_code=201
)
async def generate_tasks(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    ai_client: AIClient = Depends(get_ai_client),
):
    """Ask the assistant for a starter task list and create it."""
    project: Project = await get_accessible_project(project_id, auth, session)
    return await task_service.generate_project_tasks(session, project, auth, ai_client)


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await _get_task(session, task_id, auth)


@router.patch("/tasks/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.update_task(session, task, body, auth)


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    await task_service.delete_task(session, task)


# ---------------------------------------------------------------------------
# Subtasks
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}/subtasks", response_model=List[TaskRead])
async def list_subtasks(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.list_subtasks(session, task.id)


@router.post("/tasks/{task_id}/subtasks", response_model=TaskRead, status_code=201)
async def create_subtask(
    task_id: uuid.UUID,
    body: TaskCreate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    parent = await _get_task(session, task_id, auth)
    return await task_service.create_task(
        session, parent.project_id, body, auth, parent_task_id=parent.id
    )


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}/comments", response_model=List[CommentRead])
async def list_comments(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.list_comments(session, task.id)


@router.post("/tasks/{task_id}/comments", response_model=CommentRead, status_code=201)
async def add_comment(
    task_id: uuid.UUID,
    body: CommentCreate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.add_comment(session, task, body, auth)


@router.delete("/tasks/comments/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Authors can always delete their comments; otherwise project access is required."""
    comment = await task_service.get_comment_or_404(session, comment_id)
    if comment.user_id != auth.user_id:
        task = await task_service.get_task_or_404(session, comment.task_id)
        project = await session.get(Project, task.project_id)
        if not project or not await has_project_access(project, auth, session):
            raise HTTPException(status_code=403, detail="You cannot delete this comment")
    await task_service.delete_comment(session, comment)


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}/attachments", response_model=List[AttachmentRead])
async def list_attachments(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.list_attachments(session, task.id)


@router.post("/tasks/{task_id}/attachments", response_model=AttachmentRead, status_code=201)
async def add_attachment(
    task_id: uuid.UUID,
    file: UploadFile = File(...),
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.add_attachment(session, task, file, auth)


@router.delete("/tasks/attachments/{attachment_id}", status_code=204)
async def delete_attachment(
    attachment_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    attachment = await task_service.get_attachment_or_404(session, attachment_id)
    await _get_task(session, attachment.task_id, auth)
    await task_service.delete_attachment(session, attachment)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}/dependencies", response_model=List[DependencyRead])
async def list_dependencies(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.list_dependencies(session, task.id)


@router.post("/tasks/{task_id}/dependencies", response_model=DependencyRead, status_code=201)
async def add_dependency(
    task_id: uuid.UUID,
    body: DependencyAdd,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Mark this task as depending on another task of the same project."""
    task = await _get_task(session, task_id, auth)
    return await task_service.add_dependency(session, task, body.depends_on_task_id)


@router.delete("/tasks/{task_id}/dependencies/{depends_on_id}", status_code=204)
async def remove_dependency(
    task_id: uuid.UUID,
    depends_on_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    await task_service.remove_dependency(session, task.id, depends_on_id)


# ---------------------------------------------------------------------------
# Time tracking
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}/time-entries", response_model=List[TimeEntryRead])
async def list_time_entries(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.list_time_entries(session, task.id)


@router.post("/tasks/{task_id}/time-entries", response_model=TimeEntryRead, status_code=201)
async def create_time_entry(
    task_id: uuid.UUID,
    body: TimeEntryCreate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.create_time_entry(session, task, body, auth)


@router.post("/tasks/{task_id}/time-entries/{entry_id}/stop", response_model=TimeEntryRead)
async def stop_time_entry(
    task_id: uuid.UUID,
    entry_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    task = await _get_task(session, task_id, auth)
    return await task_service.stop_time_entry(session, task.id, entry_id)
