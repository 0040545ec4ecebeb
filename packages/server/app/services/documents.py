"""
Document service: upload, text extraction and AI analysis.

Analysis runs after the upload response as a FastAPI background task with
its own database session.
"""

from __future__ import annotations

import io
import uuid

import pdfplumber
import structlog
from fastapi import HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from app.ai.analyzer import analyze_document
from app.ai.client import AIClient, AIProviderError
from app.core.auth import AuthenticatedUser
from app.models.document import Document
from app.models.project import Project
from app.services.projects import upsert_analysis
from app.services.storage import read_upload, store_bytes
from cohete_shared.schemas.common import AnalysisStatus

log = structlog.get_logger()

ALLOWED_DOCUMENT_TYPES = {"application/pdf", "text/plain"}


def extract_text(data: bytes, mime_type: str) -> str:
    if mime_type == "application/pdf":
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
        return "\n".join(pages).strip()
    return data.decode("utf-8", errors="replace").strip()


async def create_document(
    session: AsyncSession, project: Project, file: UploadFile, auth: AuthenticatedUser
) -> Document:
    data = await read_upload(file, allowed_types=ALLOWED_DOCUMENT_TYPES)
    original_name = file.filename or "document"
    stored = store_bytes(data, original_name, subdir=f"documents/{project.id}")

    document = Document(
        project_id=project.id,
        uploaded_by=auth.user_id,
        filename=stored,
        original_name=original_name,
        mime_type=file.content_type,
        analysis_status=AnalysisStatus.PROCESSING.value,
    )
    try:
        document.extracted_text = extract_text(data, file.content_type)
    except Exception as exc:  # pdfplumber raises a variety of parser errors
        log.warning("document.extract_failed", filename=original_name, error=str(exc))
        document.analysis_status = AnalysisStatus.FAILED.value
        document.analysis_error = f"Could not extract text: {exc}"

    if document.analysis_status != AnalysisStatus.FAILED.value and not document.extracted_text:
        document.analysis_status = AnalysisStatus.FAILED.value
        document.analysis_error = "The document contains no extractable text"

    session.add(document)
    await session.flush()
    log.info("document.uploaded", document_id=str(document.id), project_id=str(project.id))
    return document


async def run_document_analysis(
    document_id: uuid.UUID, session_factory: sessionmaker, ai_client: AIClient
) -> None:
    """Background task: analyse the extracted text and store the outcome."""
    async with session_factory() as session:
        document = await session.get(Document, document_id)
        if not document or document.analysis_status != AnalysisStatus.PROCESSING.value:
            return
        try:
            results = await analyze_document(ai_client, document.extracted_text or "")
        except AIProviderError as exc:
            log.error("document.analysis_failed", document_id=str(document_id), error=exc.message)
            document.analysis_status = AnalysisStatus.FAILED.value
            document.analysis_error = exc.message
        else:
            document.analysis_status = AnalysisStatus.COMPLETED.value
            document.analysis_results = results
            log.info("document.analysis_completed", document_id=str(document_id))
        session.add(document)
        await session.commit()


async def list_documents(session: AsyncSession, project_id: uuid.UUID) -> list[Document]:
    result = await session.execute(
        select(Document)
        .where(Document.project_id == project_id)
        .order_by(Document.created_at.desc())
    )
    return list(result.scalars().all())


async def get_project_document(
    session: AsyncSession, project_id: uuid.UUID, document_id: uuid.UUID
) -> Document:
    document = await session.get(Document, document_id)
    if not document or document.project_id != project_id:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


async def apply_document_analysis(session: AsyncSession, project: Project, document: Document):
    """Copy a completed analysis into the project's analysis row."""
    if document.analysis_status != AnalysisStatus.COMPLETED.value or not document.analysis_results:
        raise HTTPException(status_code=400, detail="Document analysis is not completed")
    analysis = await upsert_analysis(session, project.id, document.analysis_results)
    log.info("document.analysis_applied", document_id=str(document.id), project_id=str(project.id))
    return analysis
