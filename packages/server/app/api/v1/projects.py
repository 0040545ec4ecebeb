"""
Project endpoints: CRUD, brand analysis, membership and image analysis.

Access: primary users see every project; other users see the projects they
created or are members of. Mutations are primary-only.
"""

from __future__ import annotations

import base64
import uuid
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.analyzer import analyze_marketing_image
from app.ai.client import AIClient, get_ai_client
from app.core.auth import (
    AuthenticatedUser,
    get_accessible_project,
    require_primary,
    require_user,
)
from app.core.database import get_session
from app.services import projects as project_service
from app.services.storage import read_upload
from cohete_shared.schemas.common import ImageAnalysisType, MessageResponse
from cohete_shared.schemas.projects import (
    AnalysisRead,
    AnalysisUpdate,
    ImageAnalysisResponse,
    ImageInfo,
    ProjectCreate,
    ProjectDetail,
    ProjectMemberAdd,
    ProjectMemberRead,
    ProjectRead,
    ProjectUpdate,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


@router.get("", response_model=List[ProjectRead])
async def list_projects(
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.list_projects(session, auth)


@router.post("", response_model=ProjectDetail, status_code=201)
async def create_project(
    body: ProjectCreate,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    """Create a project. The creator is added as its owner."""
    project = await project_service.create_project(session, body, auth)
    return await project_service.to_detail(session, project)


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await project_service.to_detail(session, project)


@router.patch("/{project_id}", response_model=ProjectDetail)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    project = await project_service.update_project(session, project, body)
    return await project_service.to_detail(session, project)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    await project_service.delete_project(session, project)


@router.patch("/{project_id}/analysis", response_model=AnalysisRead)
async def update_analysis(
    project_id: uuid.UUID,
    body: AnalysisUpdate,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await project_service.upsert_analysis(
        session, project.id, body.model_dump(exclude_unset=True)
    )


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router.get("/{project_id}/members", response_model=List[ProjectMemberRead])
async def list_members(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await project_service.list_members(session, project.id)


@router.post("/{project_id}/members", response_model=MessageResponse, status_code=201)
async def add_members(
    project_id: uuid.UUID,
    body: ProjectMemberAdd,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    added = await project_service.add_members(session, project, body.user_ids, body.role)
    return MessageResponse(message=f"{added} member(s) added")


@router.delete("/{project_id}/members/{user_id}", status_code=204)
async def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_primary),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    await project_service.remove_member(session, project.id, user_id)


# ---------------------------------------------------------------------------
# Image analysis
# ---------------------------------------------------------------------------


@router.post("/{project_id}/analyze-image", response_model=ImageAnalysisResponse)
async def analyze_image(
    project_id: uuid.UUID,
    image: UploadFile = File(...),
    analysis_type: str = Form(ImageAnalysisType.CONTENT.value),
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
    ai_client: AIClient = Depends(get_ai_client),
):
    """Run a brand, content or audience analysis on an uploaded image."""
    await get_accessible_project(project_id, auth, session)
    try:
        kind = ImageAnalysisType(analysis_type)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail="analysis_type must be one of: brand, content, audience",
        )

    data = await read_upload(image, allowed_prefix="image/")
    result = await analyze_marketing_image(
        ai_client,
        base64.b64encode(data).decode("ascii"),
        image.content_type,
        kind.value,
    )
    return ImageAnalysisResponse(
        **result,
        image_info=ImageInfo(
            filename=image.filename or "image",
            content_type=image.content_type,
            size=len(data),
        ),
    )
