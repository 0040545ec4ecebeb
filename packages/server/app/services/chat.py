"""
Chat service: project-scoped assistant conversations.
"""

from __future__ import annotations

import uuid
from datetime import datetime

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.ai.analyzer import process_chat_message
from app.ai.client import AIClient
from app.core.auth import AuthenticatedUser
from app.models.chat import ChatMessage
from app.models.project import Project
from app.services.projects import get_analysis, project_context
from cohete_shared.schemas.chat import ChatMessageRead

log = structlog.get_logger()

HISTORY_LIMIT = 20


async def list_messages(session: AsyncSession, project_id: uuid.UUID) -> list[ChatMessage]:
    result = await session.execute(
        select(ChatMessage)
        .where(ChatMessage.project_id == project_id)
        .order_by(ChatMessage.created_at, ChatMessage.role.desc())
    )
    return list(result.scalars().all())


async def send_project_message(
    session: AsyncSession,
    project: Project,
    message: str,
    auth: AuthenticatedUser,
    ai_client: AIClient,
) -> ChatMessage:
    """Reply using the project context and history; both turns are stored."""
    history = await list_messages(session, project.id)
    context = project_context(project, await get_analysis(session, project.id))

    reply = await process_chat_message(
        ai_client,
        message,
        context,
        [{"role": m.role, "content": m.content} for m in history[-HISTORY_LIMIT:]],
    )

    session.add(ChatMessage(project_id=project.id, user_id=auth.user_id, role="user", content=message))
    await session.flush()
    answer = ChatMessage(project_id=project.id, user_id=None, role="assistant", content=reply)
    session.add(answer)
    await session.flush()
    log.info("chat.replied", project_id=str(project.id), user_id=str(auth.user_id))
    return answer


async def send_general_message(message: str, ai_client: AIClient) -> ChatMessageRead:
    """Reply without project context; nothing is stored."""
    reply = await process_chat_message(ai_client, message)
    return ChatMessageRead(role="assistant", content=reply, created_at=datetime.utcnow())


async def clear_history(session: AsyncSession, project_id: uuid.UUID) -> int:
    result = await session.execute(delete(ChatMessage).where(ChatMessage.project_id == project_id))
    await session.flush()
    return result.rowcount or 0
