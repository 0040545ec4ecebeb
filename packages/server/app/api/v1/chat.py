"""
Marketing assistant chat.

POST   /api/v1/chat                         - Ask the assistant (project-scoped or general)
GET    /api/v1/projects/{projectId}/chat    - Stored project conversation
DELETE /api/v1/projects/{projectId}/chat    - Clear the conversation (primary only)
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.client import AIClient, get_ai_client
from app.core.auth import (
    AuthenticatedUser,
    get_accessible_project,
    require_primary,
    require_user,
)
from app.core.database import get_session
from app.services import chat as chat_service
from cohete_shared.schemas.chat import ChatMessageRead, ChatRequest
from cohete_shared.schemas.common import MessageResponse

router = APIRouter()


@router.post("/chat", response_model=ChatMessageRead)
async def send_message(
    body: ChatRequest,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    ai_client: AIClient = Depends(get_ai_client),
):
    if body.project_id is None:
        return await chat_service.send_general_message(body.message, ai_client)
    project = await get_accessible_project(body.project_id, auth, session)
    return await chat_service.send_project_message(
        session, project, body.message, auth, ai_client
    )


@router.get("/projects/{project_id}/chat", response_model=List[ChatMessageRead])
async def chat_history(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await chat_service.list_messages(session, project.id)


@router.delete("/projects/{project_id}/chat", response_model=MessageResponse)
async def clear_chat_history(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    removed = await chat_service.clear_history(session, project.id)
    return MessageResponse(message=f"{removed} message(s) deleted")
