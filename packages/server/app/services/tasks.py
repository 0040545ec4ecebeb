"""
Task service layer: business logic for tasks, subtasks, comments,
attachments, dependencies and time tracking.

Handles:
- Task CRUD with completion stamping and assignment notifications
- Dependency management with circular dependency detection
- Timers and logged intervals per task
- AI-suggested task lists for a project
"""

from __future__ import annotations

import uuid
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import HTTPException, UploadFile
from sqlalchemy import case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.ai.analyzer import suggest_tasks
from app.ai.client import AIClient
from app.core.auth import AuthenticatedUser
from app.models.dependency import TaskDependency
from app.models.project import Project
from app.models.task import Task, TaskAttachment, TaskComment, TimeEntry
from app.models.user import User
from app.services.notifications import notify
from app.services.projects import get_analysis, project_context
from app.services.storage import delete_stored, read_upload, store_bytes
from cohete_shared.schemas.common import (
    TASK_GROUP_ORDER,
    NotificationType,
    TaskGroup,
    TaskStatus,
)
from cohete_shared.schemas.tasks import (
    CommentCreate,
    TaskCreate,
    TaskUpdate,
    TimeEntryCreate,
)

log = structlog.get_logger()

_GROUP_RANK = case(
    {group.value: rank for rank, group in enumerate(TASK_GROUP_ORDER)},
    value=Task.group,
    else_=len(TASK_GROUP_ORDER),
)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_task_or_404(session: AsyncSession, task_id: uuid.UUID) -> Task:
    task = await session.get(Task, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


async def _ensure_user(session: AsyncSession, user_id: Optional[uuid.UUID]) -> None:
    if user_id and not await session.get(User, user_id):
        raise HTTPException(status_code=404, detail="Assignee not found")


async def _notify_assignment(
    session: AsyncSession, task: Task, assignee_id: Optional[uuid.UUID], actor_id: uuid.UUID
) -> None:
    if not assignee_id or assignee_id == actor_id:
        return
    await notify(
        session,
        assignee_id,
        NotificationType.ASSIGNMENT,
        "Nueva tarea asignada",
        f"Se te ha asignado la tarea: {task.title}",
        related_entity_type="task",
        related_entity_id=task.id,
    )


def _apply_status(task: Task, new_status: str) -> None:
    """Completion stamps completed_at and progress; leaving completed clears the stamp."""
    old_status = task.status
    task.status = new_status
    if new_status == TaskStatus.COMPLETED.value and old_status != new_status:
        task.completed_at = datetime.utcnow()
        task.progress = 100
    elif new_status != TaskStatus.COMPLETED.value and old_status == TaskStatus.COMPLETED.value:
        task.completed_at = None


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def list_tasks(
    session: AsyncSession,
    project_id: uuid.UUID,
    status: Optional[TaskStatus] = None,
    group: Optional[TaskGroup] = None,
    assigned_to_id: Optional[uuid.UUID] = None,
) -> list[Task]:
    query = select(Task).where(Task.project_id == project_id, Task.parent_task_id.is_(None))
    if status:
        query = query.where(Task.status == status.value)
    if group:
        query = query.where(Task.group == group.value)
    if assigned_to_id:
        query = query.where(Task.assigned_to_id == assigned_to_id)
    result = await session.execute(query.order_by(_GROUP_RANK, Task.position, Task.created_at))
    return list(result.scalars().all())


async def create_task(
    session: AsyncSession,
    project_id: uuid.UUID,
    task_in: TaskCreate,
    auth: AuthenticatedUser,
    parent_task_id: Optional[uuid.UUID] = None,
    ai_generated: bool = False,
) -> Task:
    await _ensure_user(session, task_in.assigned_to_id)
    task = Task(
        project_id=project_id,
        parent_task_id=parent_task_id,
        assigned_to_id=task_in.assigned_to_id,
        created_by_id=auth.user_id,
        title=task_in.title,
        description=task_in.description,
        status=TaskStatus.PENDING.value,
        priority=task_in.priority.value,
        group=task_in.group.value,
        position=task_in.position,
        ai_generated=ai_generated,
        tags=list(task_in.tags),
        due_date=task_in.due_date,
        estimated_hours=task_in.estimated_hours,
        progress=task_in.progress,
    )
    _apply_status(task, task_in.status.value)
    session.add(task)
    await session.flush()

    await _notify_assignment(session, task, task.assigned_to_id, auth.user_id)
    log.info("task.created", task_id=str(task.id), project_id=str(project_id))
    return task


async def update_task(
    session: AsyncSession, task: Task, task_in: TaskUpdate, auth: AuthenticatedUser
) -> Task:
    data = task_in.model_dump(exclude_unset=True)

    new_assignee = data.get("assigned_to_id")
    reassigned = "assigned_to_id" in data and new_assignee != task.assigned_to_id
    if reassigned:
        await _ensure_user(session, new_assignee)

    status = data.pop("status", None)
    for key in ("priority", "group"):
        if data.get(key) is not None:
            data[key] = data[key].value
    for key, value in data.items():
        setattr(task, key, value)
    if status is not None:
        _apply_status(task, status.value)

    session.add(task)
    await session.flush()

    if reassigned:
        await _notify_assignment(session, task, new_assignee, auth.user_id)
    return task


async def delete_task(session: AsyncSession, task: Task) -> None:
    await session.delete(task)
    await session.flush()
    log.info("task.deleted", task_id=str(task.id))


async def list_subtasks(session: AsyncSession, task_id: uuid.UUID) -> list[Task]:
    result = await session.execute(
        select(Task).where(Task.parent_task_id == task_id).order_by(Task.position, Task.created_at)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


async def list_comments(session: AsyncSession, task_id: uuid.UUID) -> list[TaskComment]:
    result = await session.execute(
        select(TaskComment).where(TaskComment.task_id == task_id).order_by(TaskComment.created_at)
    )
    return list(result.scalars().all())


async def add_comment(
    session: AsyncSession, task: Task, comment_in: CommentCreate, auth: AuthenticatedUser
) -> TaskComment:
    comment = TaskComment(
        task_id=task.id,
        user_id=auth.user_id,
        content=comment_in.content,
        is_internal=comment_in.is_internal,
    )
    session.add(comment)
    await session.flush()

    if task.assigned_to_id and task.assigned_to_id != auth.user_id:
        await notify(
            session,
            task.assigned_to_id,
            NotificationType.COMMENT,
            "Nuevo comentario",
            f"{auth.user.full_name} comentó en la tarea: {task.title}",
            related_entity_type="task",
            related_entity_id=task.id,
        )
    return comment


async def get_comment_or_404(session: AsyncSession, comment_id: uuid.UUID) -> TaskComment:
    comment = await session.get(TaskComment, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


async def delete_comment(session: AsyncSession, comment: TaskComment) -> None:
    await session.delete(comment)
    await session.flush()


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


async def list_attachments(session: AsyncSession, task_id: uuid.UUID) -> list[TaskAttachment]:
    result = await session.execute(
        select(TaskAttachment).where(TaskAttachment.task_id == task_id).order_by(TaskAttachment.created_at)
    )
    return list(result.scalars().all())


async def add_attachment(
    session: AsyncSession, task: Task, file: UploadFile, auth: AuthenticatedUser
) -> TaskAttachment:
    data = await read_upload(file)
    original_name = file.filename or "attachment"
    path = store_bytes(data, original_name, subdir=f"tasks/{task.id}")
    attachment = TaskAttachment(
        task_id=task.id,
        file_name=original_name,
        file_url=path,
        file_size=len(data),
        mime_type=file.content_type,
        uploaded_by=auth.user_id,
    )
    session.add(attachment)
    await session.flush()
    return attachment


async def get_attachment_or_404(session: AsyncSession, attachment_id: uuid.UUID) -> TaskAttachment:
    attachment = await session.get(TaskAttachment, attachment_id)
    if not attachment:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return attachment


async def delete_attachment(session: AsyncSession, attachment: TaskAttachment) -> None:
    await session.delete(attachment)
    await session.flush()
    delete_stored(attachment.file_url)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


async def _has_path(
    session: AsyncSession,
    from_id: uuid.UUID,
    to_id: uuid.UUID,
    project_id: uuid.UUID,
) -> bool:
    """BFS over depends-on edges: is to_id reachable from from_id?"""
    result = await session.execute(
        select(TaskDependency)
        .join(Task, Task.id == TaskDependency.task_id)
        .where(Task.project_id == project_id)
    )
    adj: dict[uuid.UUID, list[uuid.UUID]] = defaultdict(list)
    for dep in result.scalars().all():
        adj[dep.task_id].append(dep.depends_on_task_id)

    visited: set[uuid.UUID] = set()
    queue = deque([from_id])
    while queue:
        current = queue.popleft()
        if current == to_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        queue.extend(adj.get(current, []))
    return False


async def list_dependencies(session: AsyncSession, task_id: uuid.UUID) -> list[TaskDependency]:
    result = await session.execute(
        select(TaskDependency).where(TaskDependency.task_id == task_id)
    )
    return list(result.scalars().all())


async def add_dependency(
    session: AsyncSession, task: Task, depends_on_id: uuid.UUID
) -> TaskDependency:
    if task.id == depends_on_id:
        raise HTTPException(status_code=409, detail="A task cannot depend on itself")

    other = await get_task_or_404(session, depends_on_id)
    if other.project_id != task.project_id:
        raise HTTPException(status_code=400, detail="Both tasks must belong to the same project")

    existing = await session.execute(
        select(TaskDependency).where(
            TaskDependency.task_id == task.id,
            TaskDependency.depends_on_task_id == depends_on_id,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Dependency already exists")

    # task -> other closes a cycle when task is already reachable from other
    if await _has_path(session, depends_on_id, task.id, task.project_id):
        raise HTTPException(
            status_code=409,
            detail="Adding this dependency would create a circular dependency",
        )

    dep = TaskDependency(task_id=task.id, depends_on_task_id=depends_on_id)
    session.add(dep)
    await session.flush()
    return dep


async def remove_dependency(
    session: AsyncSession, task_id: uuid.UUID, depends_on_id: uuid.UUID
) -> None:
    result = await session.execute(
        select(TaskDependency).where(
            TaskDependency.task_id == task_id,
            TaskDependency.depends_on_task_id == depends_on_id,
        )
    )
    dep = result.scalar_one_or_none()
    if not dep:
        raise HTTPException(status_code=404, detail="Dependency not found")
    await session.delete(dep)
    await session.flush()


# ---------------------------------------------------------------------------
# Time tracking
# ---------------------------------------------------------------------------


def _minutes_between(start: datetime, end: datetime) -> int:
    return max(0, int((_as_utc(end) - _as_utc(start)).total_seconds() // 60))


async def list_time_entries(session: AsyncSession, task_id: uuid.UUID) -> list[TimeEntry]:
    result = await session.execute(
        select(TimeEntry).where(TimeEntry.task_id == task_id).order_by(TimeEntry.start_time.desc())
    )
    return list(result.scalars().all())


async def create_time_entry(
    session: AsyncSession, task: Task, entry_in: TimeEntryCreate, auth: AuthenticatedUser
) -> TimeEntry:
    """Without end_time this starts a running timer; with it, logs a finished interval."""
    start = entry_in.start_time or datetime.now(timezone.utc)
    entry = TimeEntry(
        task_id=task.id,
        user_id=auth.user_id,
        description=entry_in.description,
        start_time=start,
    )
    if entry_in.end_time is not None:
        if _as_utc(entry_in.end_time) < _as_utc(start):
            raise HTTPException(status_code=400, detail="end_time must be after start_time")
        entry.end_time = entry_in.end_time
        entry.duration_minutes = _minutes_between(start, entry_in.end_time)
        entry.is_running = False
    session.add(entry)
    await session.flush()
    return entry


async def stop_time_entry(
    session: AsyncSession, task_id: uuid.UUID, entry_id: uuid.UUID
) -> TimeEntry:
    entry = await session.get(TimeEntry, entry_id)
    if not entry or entry.task_id != task_id:
        raise HTTPException(status_code=404, detail="Time entry not found")
    if not entry.is_running:
        raise HTTPException(status_code=409, detail="Time entry is not running")
    end = datetime.now(timezone.utc)
    entry.end_time = end
    entry.duration_minutes = _minutes_between(entry.start_time, end)
    entry.is_running = False
    session.add(entry)
    await session.flush()
    return entry


# ---------------------------------------------------------------------------
# AI suggestions
# ---------------------------------------------------------------------------


async def generate_project_tasks(
    session: AsyncSession, project: Project, auth: AuthenticatedUser, ai_client: AIClient
) -> list[Task]:
    context = project_context(project, await get_analysis(session, project.id))
    suggestions = await suggest_tasks(ai_client, context)

    tasks = []
    for position, item in enumerate(suggestions):
        task = await create_task(
            session,
            project.id,
            TaskCreate(
                title=item["title"],
                description=item["description"],
                priority=item["priority"],
                tags=item["tags"],
                position=position,
            ),
            auth,
            ai_generated=True,
        )
        tasks.append(task)
    log.info("tasks.generated", project_id=str(project.id), count=len(tasks))
    return tasks
