"""
Project document endpoints.

POST /api/v1/projects/{projectId}/documents                          - Upload (analysis runs in background)
GET  /api/v1/projects/{projectId}/documents                          - List documents
POST /api/v1/projects/{projectId}/documents/{documentId}/use-analysis - Copy analysis into the project
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.ai.client import AIClient, get_ai_client
from app.core.auth import (
    AuthenticatedUser,
    get_accessible_project,
    require_primary,
    require_user,
)
from app.core.database import get_session, get_session_factory
from app.services import documents as document_service
from cohete_shared.schemas.common import AnalysisStatus
from cohete_shared.schemas.documents import DocumentRead
from cohete_shared.schemas.projects import AnalysisRead

router = APIRouter()


@router.post("", response_model=DocumentRead, status_code=201)
async def upload_document(
    project_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    session_factory: sessionmaker = Depends(get_session_factory),
    ai_client: AIClient = Depends(get_ai_client),
):
    """Store a PDF or text document and queue its brand analysis."""
    project = await get_accessible_project(project_id, auth, session)
    document = await document_service.create_document(session, project, file, auth)
    # The background task reads the row through its own session
    await session.commit()

    if document.analysis_status == AnalysisStatus.PROCESSING.value:
        background_tasks.add_task(
            document_service.run_document_analysis, document.id, session_factory, ai_client
        )
    return document


@router.get("", response_model=List[DocumentRead])
async def list_documents(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await document_service.list_documents(session, project.id)


@router.post("/{document_id}/use-analysis", response_model=AnalysisRead)
async def use_document_analysis(
    project_id: uuid.UUID,
    document_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    document = await document_service.get_project_document(session, project.id, document_id)
    return await document_service.apply_document_analysis(session, project, document)
