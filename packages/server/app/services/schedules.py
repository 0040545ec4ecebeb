"""
Schedule service: AI generation, selective regeneration, entry edits,
reference images and the Excel export.
"""

from __future__ import annotations

import io
import uuid
from datetime import date

import structlog
from fastapi import HTTPException
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.ai import scheduler
from app.ai.client import AIClient
from app.core.auth import AuthenticatedUser
from app.models.project import Project
from app.models.schedule import ContentHistory, Schedule, ScheduleEntry
from app.services.projects import analysis_dict, get_analysis
from cohete_shared.schemas.common import PERIOD_DAYS
from cohete_shared.schemas.schedules import (
    ScheduleCreate,
    ScheduleDetail,
    ScheduleEntryRead,
    ScheduleEntryUpdate,
    ScheduleRead,
    ScheduleRegenerate,
)

log = structlog.get_logger()

PLATFORM_FORMATS = {
    "instagram": "Carrusel/Reels • 9:16 o 1:1",
    "facebook": "Imagen/Video • 16:9 o 1:1",
    "twitter": "Imagen/Video • 16:9",
    "x": "Imagen/Video • 16:9",
    "linkedin": "Imagen/Documento • 1.91:1 o 1:1",
    "tiktok": "Video vertical • 9:16",
    "youtube": "Video/Shorts • 16:9 o 9:16",
    "pinterest": "Pin vertical • 2:3",
    "whatsapp": "Imagen/Estado • 9:16",
}
DEFAULT_FORMAT = "Formato estándar"

EXPORT_HEADERS = [
    "Fecha",
    "Hora",
    "Plataforma",
    "Formato",
    "Título",
    "Copy In (texto en diseño)",
    "Copy Out (descripción)",
    "Hashtags",
    "Instrucciones de Diseño",
    "URL de Imagen",
]
EXPORT_WIDTHS = [12, 8, 14, 26, 36, 36, 48, 30, 48, 40]


def platform_format(platform: str) -> str:
    key = (platform or "").strip().lower()
    for name, fmt in PLATFORM_FORMATS.items():
        if key == name or key.startswith(f"{name} "):
            return fmt
    return DEFAULT_FORMAT


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_schedule_or_404(session: AsyncSession, schedule_id: uuid.UUID) -> Schedule:
    schedule = await session.get(Schedule, schedule_id)
    if not schedule:
        raise HTTPException(status_code=404, detail="Schedule not found")
    return schedule


async def get_entry_or_404(session: AsyncSession, entry_id: uuid.UUID) -> ScheduleEntry:
    entry = await session.get(ScheduleEntry, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Schedule entry not found")
    return entry


async def list_entries(session: AsyncSession, schedule_id: uuid.UUID) -> list[ScheduleEntry]:
    result = await session.execute(
        select(ScheduleEntry)
        .where(ScheduleEntry.schedule_id == schedule_id)
        .order_by(ScheduleEntry.post_date, ScheduleEntry.post_time, ScheduleEntry.created_at)
    )
    return list(result.scalars().all())


async def to_detail(session: AsyncSession, schedule: Schedule) -> ScheduleDetail:
    entries = await list_entries(session, schedule.id)
    return ScheduleDetail(
        **ScheduleRead.model_validate(schedule).model_dump(),
        entries=[ScheduleEntryRead.model_validate(e) for e in entries],
    )


async def list_project_schedules(session: AsyncSession, project_id: uuid.UUID) -> list[Schedule]:
    result = await session.execute(
        select(Schedule)
        .where(Schedule.project_id == project_id)
        .order_by(Schedule.created_at.desc())
    )
    return list(result.scalars().all())


async def list_recent_schedules(
    session: AsyncSession, project_ids: list[uuid.UUID] | None, limit: int
) -> list[Schedule]:
    """Most recent schedules; ``project_ids=None`` means every project."""
    query = select(Schedule).order_by(Schedule.created_at.desc()).limit(limit)
    if project_ids is not None:
        if not project_ids:
            return []
        query = query.where(Schedule.project_id.in_(project_ids))
    result = await session.execute(query)
    return list(result.scalars().all())


async def _previous_content(session: AsyncSession, project_id: uuid.UUID) -> list[str]:
    result = await session.execute(
        select(ContentHistory.content)
        .where(ContentHistory.project_id == project_id)
        .order_by(ContentHistory.created_at)
    )
    return [row[0] for row in result.all()]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


async def create_schedule(
    session: AsyncSession,
    project: Project,
    req: ScheduleCreate,
    auth: AuthenticatedUser,
    ai_client: AIClient,
) -> Schedule:
    analysis = analysis_dict(await get_analysis(session, project.id))
    duration_days = PERIOD_DAYS[req.period_type]

    generated = await scheduler.generate_schedule(
        ai_client,
        {"name": project.name, "client": project.client, "description": project.description},
        analysis,
        req.start_date,
        duration_days,
        specifications=req.specifications,
        previous_content=await _previous_content(session, project.id),
        additional_instructions=req.additional_instructions,
    )

    schedule = Schedule(
        project_id=project.id,
        name=generated.name,
        start_date=req.start_date,
        specifications=req.specifications,
        additional_instructions=req.additional_instructions,
        created_by=auth.user_id,
    )
    session.add(schedule)
    await session.flush()

    for values in generated.entries:
        session.add(ScheduleEntry(schedule_id=schedule.id, **values))
        session.add(
            ContentHistory(
                project_id=project.id,
                content=values.get("content") or values["title"],
                content_type="post",
                title=values["title"],
                platform=values["platform"],
            )
        )
    await session.flush()

    log.info(
        "schedule.generated",
        schedule_id=str(schedule.id),
        project_id=str(project.id),
        entries=len(generated.entries),
        fallback=generated.used_fallback,
    )
    return schedule


async def regenerate_schedule(
    session: AsyncSession,
    schedule: Schedule,
    req: ScheduleRegenerate,
    ai_client: AIClient,
) -> Schedule:
    entries = await list_entries(session, schedule.id)
    if not entries:
        raise HTTPException(status_code=400, detail="The schedule has no entries to edit")

    areas = scheduler.resolve_areas(req.selected_areas)
    instructions = req.additional_instructions or schedule.additional_instructions
    if req.additional_instructions is not None:
        schedule.additional_instructions = req.additional_instructions

    changed = 0
    for entry in entries:
        current = ScheduleEntryRead.model_validate(entry).model_dump()
        changes = await scheduler.regenerate_entry(
            ai_client, current, areas, instructions, req.specific_instructions
        )
        for key, value in changes.items():
            setattr(entry, key, value)
        if changes:
            session.add(entry)
            changed += 1

    session.add(schedule)
    await session.flush()
    log.info("schedule.regenerated", schedule_id=str(schedule.id), entries=len(entries), changed=changed)
    return schedule


async def update_instructions(
    session: AsyncSession, schedule: Schedule, instructions: str | None
) -> Schedule:
    schedule.additional_instructions = instructions
    session.add(schedule)
    await session.flush()
    return schedule


async def update_entry(
    session: AsyncSession, entry: ScheduleEntry, req: ScheduleEntryUpdate
) -> ScheduleEntry:
    for key, value in req.model_dump(exclude_unset=True).items():
        setattr(entry, key, value)
    session.add(entry)
    await session.flush()
    return entry


async def update_entry_comments(
    session: AsyncSession, entry: ScheduleEntry, comments: str | None
) -> ScheduleEntry:
    entry.comments = comments
    session.add(entry)
    await session.flush()
    return entry


async def generate_entry_image(
    session: AsyncSession, entry: ScheduleEntry, prompt: str | None, ai_client: AIClient
) -> ScheduleEntry:
    prompt = (prompt or entry.design_instructions or entry.title).strip()
    url = await ai_client.generate_image(prompt)
    entry.reference_image_prompt = prompt
    entry.reference_image_url = url
    session.add(entry)
    await session.flush()
    log.info("schedule.entry_image_generated", entry_id=str(entry.id))
    return entry


async def delete_schedule(session: AsyncSession, schedule: Schedule) -> None:
    await session.execute(delete(ScheduleEntry).where(ScheduleEntry.schedule_id == schedule.id))
    await session.delete(schedule)
    await session.flush()


# ---------------------------------------------------------------------------
# Excel export
# ---------------------------------------------------------------------------


def _fmt_date(value: date | None) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def build_workbook(project: Project, schedule: Schedule, entries: list[ScheduleEntry]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Cronograma"

    last_col = get_column_letter(len(EXPORT_HEADERS))
    ws.merge_cells(f"A1:{last_col}1")
    ws["A1"] = schedule.name
    ws["A1"].font = Font(bold=True, size=14)
    ws["A1"].alignment = Alignment(horizontal="center")
    ws["A2"] = f"Proyecto: {project.name}"
    ws["A3"] = f"Cliente: {project.client}"
    ws["A4"] = f"Inicio: {_fmt_date(schedule.start_date)}"

    header_row = 6
    header_fill = PatternFill("solid", fgColor="1F2937")
    for col, title in enumerate(EXPORT_HEADERS, start=1):
        cell = ws.cell(row=header_row, column=col, value=title)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        ws.column_dimensions[get_column_letter(col)].width = EXPORT_WIDTHS[col - 1]

    for row, entry in enumerate(entries, start=header_row + 1):
        values = [
            _fmt_date(entry.post_date),
            entry.post_time or "",
            entry.platform,
            platform_format(entry.platform),
            entry.title,
            entry.copy_in or "",
            entry.copy_out or "",
            entry.hashtags or "",
            entry.design_instructions or "",
            entry.reference_image_url or "",
        ]
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.alignment = Alignment(vertical="top", wrap_text=True)

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
