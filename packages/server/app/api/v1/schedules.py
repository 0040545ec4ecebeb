"""
Content schedule endpoints.

POST  /api/v1/projects/{projectId}/schedules            - Generate a schedule with AI
GET   /api/v1/projects/{projectId}/schedules            - Schedules of a project
GET   /api/v1/schedules/recent                          - Most recent accessible schedules
GET   /api/v1/schedules/{scheduleId}                    - Schedule with entries
PATCH /api/v1/schedules/{scheduleId}/additional-instructions
POST  /api/v1/schedules/{scheduleId}/regenerate         - Selective AI edit of every entry
GET   /api/v1/schedules/{scheduleId}/download           - Excel export
DELETE /api/v1/schedules/{scheduleId}
PATCH /api/v1/schedule-entries/{entryId}
PATCH /api/v1/schedule-entries/{entryId}/comments
POST  /api/v1/schedule-entries/{entryId}/generate-image - Reference image for an entry
"""

from __future__ import annotations

import re
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.client import AIClient, get_ai_client
from app.core.auth import (
    AuthenticatedUser,
    get_accessible_project,
    require_primary,
    require_user,
)
from app.core.database import get_session
from app.models.schedule import Schedule, ScheduleEntry
from app.services import projects as project_service
from app.services import schedules as schedule_service
from cohete_shared.schemas.schedules import (
    EntryCommentsUpdate,
    ImageGenerationRequest,
    ScheduleCreate,
    ScheduleDetail,
    ScheduleEntryRead,
    ScheduleEntryUpdate,
    ScheduleInstructionsUpdate,
    ScheduleRead,
    ScheduleRegenerate,
)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _get_schedule(
    session: AsyncSession, schedule_id: uuid.UUID, auth: AuthenticatedUser
) -> Schedule:
    schedule = await schedule_service.get_schedule_or_404(session, schedule_id)
    await get_accessible_project(schedule.project_id, auth, session)
    return schedule


async def _get_entry(
    session: AsyncSession, entry_id: uuid.UUID, auth: AuthenticatedUser
) -> ScheduleEntry:
    entry = await schedule_service.get_entry_or_404(session, entry_id)
    await _get_schedule(session, entry.schedule_id, auth)
    return entry


def _export_filename(name: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9_-]+", "_", name).strip("_") or "cronograma"
    return f"{slug}.xlsx"


# ---------------------------------------------------------------------------
# Project schedules
# ---------------------------------------------------------------------------


@router.post(
    "/projects/{project_id}/schedules", response_model=ScheduleDetail, status_code=201
)
async def create_schedule(
    project_id: uuid.UUID,
    body: ScheduleCreate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    ai_client: AIClient = Depends(get_ai_client),
):
    """Generate a biweekly or monthly content schedule for the project."""
    project = await get_accessible_project(project_id, auth, session)
    schedule = await schedule_service.create_schedule(session, project, body, auth, ai_client)
    return await schedule_service.to_detail(session, schedule)


@router.get("/projects/{project_id}/schedules", response_model=List[ScheduleRead])
async def list_project_schedules(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await schedule_service.list_project_schedules(session, project.id)


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


@router.get("/schedules/recent", response_model=List[ScheduleRead])
async def recent_schedules(
    limit: int = Query(default=5, ge=1, le=50),
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project_ids = None
    if not auth.is_primary:
        project_ids = [p.id for p in await project_service.list_projects(session, auth)]
    return await schedule_service.list_recent_schedules(session, project_ids, limit)


@router.get("/schedules/{schedule_id}", response_model=ScheduleDetail)
async def get_schedule(
    schedule_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    schedule = await _get_schedule(session, schedule_id, auth)
    return await schedule_service.to_detail(session, schedule)


@router.patch("/schedules/{schedule_id}/additional-instructions", response_model=ScheduleRead)
async def update_additional_instructions(
    schedule_id: uuid.UUID,
    body: ScheduleInstructionsUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    schedule = await _get_schedule(session, schedule_id, auth)
    return await schedule_service.update_instructions(
        session, schedule, body.additional_instructions
    )


@router.post("/schedules/{schedule_id}/regenerate", response_model=ScheduleDetail)
async def regenerate_schedule(
    schedule_id: uuid.UUID,
    body: ScheduleRegenerate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    ai_client: AIClient = Depends(get_ai_client),
):
    """Rewrite only the selected areas of every entry."""
    schedule = await _get_schedule(session, schedule_id, auth)
    schedule = await schedule_service.regenerate_schedule(session, schedule, body, ai_client)
    return await schedule_service.to_detail(session, schedule)


@router.get("/schedules/{schedule_id}/download")
async def download_schedule(
    schedule_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    schedule = await _get_schedule(session, schedule_id, auth)
    project = await get_accessible_project(schedule.project_id, auth, session)
    entries = await schedule_service.list_entries(session, schedule.id)
    content = schedule_service.build_workbook(project, schedule, entries)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{_export_filename(schedule.name)}"'
        },
    )


@router.delete("/schedules/{schedule_id}", status_code=204)
async def delete_schedule(
    schedule_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    schedule = await _get_schedule(session, schedule_id, auth)
    await schedule_service.delete_schedule(session, schedule)


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


@router.patch("/schedule-entries/{entry_id}", response_model=ScheduleEntryRead)
async def update_entry(
    entry_id: uuid.UUID,
    body: ScheduleEntryUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    entry = await _get_entry(session, entry_id, auth)
    return await schedule_service.update_entry(session, entry, body)


@router.patch("/schedule-entries/{entry_id}/comments", response_model=ScheduleEntryRead)
async def update_entry_comments(
    entry_id: uuid.UUID,
    body: EntryCommentsUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    entry = await _get_entry(session, entry_id, auth)
    return await schedule_service.update_entry_comments(session, entry, body.comments)


@router.post("/schedule-entries/{entry_id}/generate-image", response_model=ScheduleEntryRead)
async def generate_entry_image(
    entry_id: uuid.UUID,
    body: ImageGenerationRequest,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    ai_client: AIClient = Depends(get_ai_client),
):
    entry = await _get_entry(session, entry_id, auth)
    return await schedule_service.generate_entry_image(session, entry, body.prompt, ai_client)
