"""
Automation rule endpoints (storage only).

GET    /api/v1/projects/{projectId}/automation-rules?active=true
POST   /api/v1/projects/{projectId}/automation-rules
GET    /api/v1/automation-rules/{ruleId}
PATCH  /api/v1/automation-rules/{ruleId}
DELETE /api/v1/automation-rules/{ruleId}
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_accessible_project, require_user
from app.core.database import get_session
from app.models.automation import AutomationRule
from app.services import automations as automation_service
from cohete_shared.schemas.automations import (
    AutomationRuleCreate,
    AutomationRuleRead,
    AutomationRuleUpdate,
)

router = APIRouter()


async def _get_rule(session: AsyncSession, rule_id: uuid.UUID, auth: AuthenticatedUser) -> AutomationRule:
    rule = await automation_service.get_rule_or_404(session, rule_id)
    await get_accessible_project(rule.project_id, auth, session)
    return rule


@router.get("/projects/{project_id}/automation-rules", response_model=List[AutomationRuleRead])
async def list_rules(
    project_id: uuid.UUID,
    active: bool = False,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await automation_service.list_rules(session, project.id, active_only=active)


@router.post("/projects/{project_id}/automation-rules", response_model=AutomationRuleRead, status_code=201)
async def create_rule(
    project_id: uuid.UUID,
    body: AutomationRuleCreate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await automation_service.create_rule(session, project.id, body, auth)


@router.get("/automation-rules/{rule_id}", response_model=AutomationRuleRead)
async def get_rule(
    rule_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await _get_rule(session, rule_id, auth)


@router.patch("/automation-rules/{rule_id}", response_model=AutomationRuleRead)
async def update_rule(
    rule_id: uuid.UUID,
    body: AutomationRuleUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    rule = await _get_rule(session, rule_id, auth)
    return await automation_service.update_rule(session, rule, body)


@router.delete("/automation-rules/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    rule = await _get_rule(session, rule_id, auth)
    await automation_service.delete_rule(session, rule)
