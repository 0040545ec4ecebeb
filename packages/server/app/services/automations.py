"""
Automation rule service: CRUD over stored rules. Rules are kept for the
board UI; no engine evaluates them.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.automation import AutomationRule
from cohete_shared.schemas.automations import AutomationRuleCreate, AutomationRuleUpdate

log = structlog.get_logger()


async def get_rule_or_404(session: AsyncSession, rule_id: uuid.UUID) -> AutomationRule:
    rule = await session.get(AutomationRule, rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Automation rule not found")
    return rule


async def list_rules(
    session: AsyncSession, project_id: uuid.UUID, active_only: bool = False
) -> list[AutomationRule]:
    stmt = select(AutomationRule).where(AutomationRule.project_id == project_id)
    if active_only:
        stmt = stmt.where(AutomationRule.is_active.is_(True))
    result = await session.execute(stmt.order_by(AutomationRule.name))
    return list(result.scalars().all())


async def create_rule(
    session: AsyncSession, project_id: uuid.UUID, req: AutomationRuleCreate, auth: AuthenticatedUser
) -> AutomationRule:
    rule = AutomationRule(project_id=project_id, created_by=auth.user_id, **req.model_dump(mode="json"))
    session.add(rule)
    await session.flush()
    log.info("automation.rule_created", rule_id=str(rule.id), trigger=rule.trigger, action=rule.action)
    return rule


async def update_rule(session: AsyncSession, rule: AutomationRule, req: AutomationRuleUpdate) -> AutomationRule:
    for key, value in req.model_dump(mode="json", exclude_unset=True).items():
        setattr(rule, key, value)
    session.add(rule)
    await session.flush()
    return rule


async def delete_rule(session: AsyncSession, rule: AutomationRule) -> None:
    await session.delete(rule)
    await session.flush()
