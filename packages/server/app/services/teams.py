"""
Team service: agency teams and their members.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.team import Team, TeamMember
from app.models.user import User
from cohete_shared.schemas.teams import (
    TeamCreate,
    TeamDetail,
    TeamMemberAdd,
    TeamMemberRead,
    TeamRead,
    TeamUpdate,
)

log = structlog.get_logger()


async def get_team_or_404(session: AsyncSession, team_id: uuid.UUID) -> Team:
    team = await session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


async def list_teams(session: AsyncSession) -> list[Team]:
    result = await session.execute(select(Team).order_by(Team.name))
    return list(result.scalars().all())


async def to_detail(session: AsyncSession, team: Team) -> TeamDetail:
    result = await session.execute(
        select(TeamMember, User)
        .join(User, User.id == TeamMember.user_id)
        .where(TeamMember.team_id == team.id)
        .order_by(TeamMember.joined_at)
    )
    members = [
        TeamMemberRead(
            user_id=user.id, full_name=user.full_name, role=member.role, joined_at=member.joined_at
        )
        for member, user in result.all()
    ]
    return TeamDetail(**TeamRead.model_validate(team).model_dump(), members=members)


async def create_team(session: AsyncSession, req: TeamCreate, auth: AuthenticatedUser) -> Team:
    team = Team(name=req.name, description=req.description, created_by=auth.user_id)
    session.add(team)
    await session.flush()
    log.info("team.created", team_id=str(team.id), name=team.name)
    return team


async def update_team(session: AsyncSession, team: Team, req: TeamUpdate) -> Team:
    for key, value in req.model_dump(exclude_unset=True).items():
        setattr(team, key, value)
    session.add(team)
    await session.flush()
    return team


async def delete_team(session: AsyncSession, team: Team) -> None:
    await session.delete(team)
    await session.flush()


async def add_member(session: AsyncSession, team: Team, req: TeamMemberAdd) -> TeamMember:
    if not await session.get(User, req.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    existing = await session.execute(
        select(TeamMember).where(TeamMember.team_id == team.id, TeamMember.user_id == req.user_id)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="User is already a member of this team")
    member = TeamMember(team_id=team.id, user_id=req.user_id, role=req.role)
    session.add(member)
    await session.flush()
    return member


async def remove_member(session: AsyncSession, team_id: uuid.UUID, user_id: uuid.UUID) -> None:
    result = await session.execute(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    )
    member = result.scalar_one_or_none()
    if not member:
        raise HTTPException(status_code=404, detail="User is not a member of this team")
    await session.delete(member)
    await session.flush()
