"""
Agency team endpoints. Any signed-in user can read teams; changes are
primary-only.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_primary, require_user
from app.core.database import get_session
from app.services import teams as team_service
from cohete_shared.schemas.teams import (
    TeamCreate,
    TeamDetail,
    TeamMemberAdd,
    TeamRead,
    TeamUpdate,
)

router = APIRouter()


@router.get("", response_model=List[TeamRead])
async def list_teams(
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await team_service.list_teams(session)


@router.post("", response_model=TeamDetail, status_code=201)
async def create_team(
    body: TeamCreate,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.create_team(session, body, auth)
    return await team_service.to_detail(session, team)


@router.get("/{team_id}", response_model=TeamDetail)
async def get_team(
    team_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.get_team_or_404(session, team_id)
    return await team_service.to_detail(session, team)


@router.patch("/{team_id}", response_model=TeamDetail)
async def update_team(
    team_id: uuid.UUID,
    body: TeamUpdate,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.get_team_or_404(session, team_id)
    team = await team_service.update_team(session, team, body)
    return await team_service.to_detail(session, team)


@router.delete("/{team_id}", status_code=204)
async def delete_team(
    team_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.get_team_or_404(session, team_id)
    await team_service.delete_team(session, team)


@router.post("/{team_id}/members", response_model=TeamDetail, status_code=201)
async def add_team_member(
    team_id: uuid.UUID,
    body: TeamMemberAdd,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.get_team_or_404(session, team_id)
    await team_service.add_member(session, team, body)
    return await team_service.to_detail(session, team)


@router.delete("/{team_id}/members/{user_id}", status_code=204)
async def remove_team_member(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.get_team_or_404(session, team_id)
    await team_service.remove_member(session, team.id, user_id)
