"""
Project service: CRUD, brand analysis, membership and the context block
handed to AI prompts.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.project import AnalysisResult, Project, ProjectMember
from app.models.user import User
from app.services.notifications import notify
from cohete_shared.schemas.common import NotificationType
from cohete_shared.schemas.projects import (
    AnalysisRead,
    ProjectCreate,
    ProjectDetail,
    ProjectMemberRead,
    ProjectRead,
    ProjectUpdate,
)

log = structlog.get_logger()

ANALYSIS_FIELDS = (
    "mission",
    "vision",
    "core_values",
    "objectives",
    "target_audience",
    "brand_tone",
    "keywords",
    "buyer_persona",
    "marketing_strategies",
    "brand_communication_style",
    "unique_value_proposition",
    "summary",
    "content_themes",
    "competitor_analysis",
    "archetypes",
    "social_networks",
)
JSON_ANALYSIS_FIELDS = {"content_themes", "competitor_analysis", "archetypes", "social_networks"}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_projects(session: AsyncSession, auth: AuthenticatedUser) -> list[Project]:
    query = select(Project).order_by(Project.created_at.desc())
    if not auth.is_primary:
        member_ids = select(ProjectMember.project_id).where(ProjectMember.user_id == auth.user_id)
        query = query.where(
            or_(Project.created_by == auth.user_id, Project.id.in_(member_ids))
        )
    result = await session.execute(query)
    return list(result.scalars().all())


async def get_analysis(session: AsyncSession, project_id: uuid.UUID) -> Optional[AnalysisResult]:
    result = await session.execute(
        select(AnalysisResult).where(AnalysisResult.project_id == project_id)
    )
    return result.scalar_one_or_none()


async def to_detail(session: AsyncSession, project: Project) -> ProjectDetail:
    analysis = await get_analysis(session, project.id)
    return ProjectDetail(
        **ProjectRead.model_validate(project).model_dump(),
        analysis=AnalysisRead.model_validate(analysis) if analysis else None,
    )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def create_project(
    session: AsyncSession, req: ProjectCreate, auth: AuthenticatedUser
) -> Project:
    data = req.model_dump(exclude={"analysis"})
    data["status"] = req.status.value
    project = Project(**data, created_by=auth.user_id)
    session.add(project)
    await session.flush()

    session.add(ProjectMember(project_id=project.id, user_id=auth.user_id, role="owner"))
    if req.analysis is not None:
        await upsert_analysis(session, project.id, req.analysis.model_dump(exclude_unset=True))
    await session.flush()

    log.info("project.created", project_id=str(project.id), name=project.name)
    return project


async def update_project(session: AsyncSession, project: Project, req: ProjectUpdate) -> Project:
    data = req.model_dump(exclude_unset=True)
    if data.get("status") is not None:
        data["status"] = data["status"].value
    for key, value in data.items():
        setattr(project, key, value)
    session.add(project)
    await session.flush()
    return project


async def delete_project(session: AsyncSession, project: Project) -> None:
    await session.delete(project)
    await session.flush()
    log.info("project.deleted", project_id=str(project.id))


async def upsert_analysis(
    session: AsyncSession, project_id: uuid.UUID, data: dict
) -> AnalysisResult:
    analysis = await get_analysis(session, project_id)
    if analysis is None:
        analysis = AnalysisResult(project_id=project_id)
    for key, value in data.items():
        if key not in ANALYSIS_FIELDS:
            continue
        if key in JSON_ANALYSIS_FIELDS:
            if value is not None and not isinstance(value, list):
                value = [value]
        elif isinstance(value, list):
            value = ", ".join(str(item) for item in value)
        elif isinstance(value, dict):
            value = "; ".join(f"{k}: {v}" for k, v in value.items())
        setattr(analysis, key, value)
    session.add(analysis)
    await session.flush()
    return analysis


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


async def list_members(session: AsyncSession, project_id: uuid.UUID) -> list[ProjectMemberRead]:
    result = await session.execute(
        select(ProjectMember, User)
        .join(User, User.id == ProjectMember.user_id)
        .where(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.added_at)
    )
    return [
        ProjectMemberRead(
            user_id=user.id,
            full_name=user.full_name,
            username=user.username,
            role=member.role,
            added_at=member.added_at,
        )
        for member, user in result.all()
    ]


async def add_members(
    session: AsyncSession, project: Project, user_ids: list[uuid.UUID], role: str = "member"
) -> int:
    """Add users that are not members yet. Returns the number added."""
    result = await session.execute(
        select(ProjectMember.user_id).where(ProjectMember.project_id == project.id)
    )
    existing = {row[0] for row in result.all()}

    added = 0
    for user_id in dict.fromkeys(user_ids):
        if user_id in existing:
            continue
        if not await session.get(User, user_id):
            raise HTTPException(status_code=404, detail=f"User {user_id} not found")
        session.add(ProjectMember(project_id=project.id, user_id=user_id, role=role))
        await notify(
            session,
            user_id,
            NotificationType.ASSIGNMENT,
            "Nuevo proyecto asignado",
            f"Has sido añadido al proyecto {project.name}",
            related_entity_type="project",
            related_entity_id=project.id,
        )
        added += 1
    await session.flush()
    return added


async def remove_member(session: AsyncSession, project_id: uuid.UUID, user_id: uuid.UUID) -> None:
    result = await session.execute(
        select(ProjectMember).where(
            ProjectMember.project_id == project_id, ProjectMember.user_id == user_id
        )
    )
    member = result.scalar_one_or_none()
    if not member:
        raise HTTPException(status_code=404, detail="User is not a member of this project")
    await session.delete(member)
    await session.flush()


# ---------------------------------------------------------------------------
# AI context
# ---------------------------------------------------------------------------


def analysis_dict(analysis: Optional[AnalysisResult]) -> dict:
    if analysis is None:
        return {}
    return {key: getattr(analysis, key) for key in ANALYSIS_FIELDS if getattr(analysis, key)}


def project_context(project: Project, analysis: Optional[AnalysisResult]) -> dict:
    return {
        "name": project.name,
        "client": project.client,
        "description": project.description,
        "status": project.status,
        "analysis": analysis_dict(analysis),
    }
