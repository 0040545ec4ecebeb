from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from .common import AnalysisStatus


class DocumentRead(BaseModel):
    id: UUID
    project_id: UUID
    uploaded_by: Optional[UUID] = None
    filename: str
    original_name: str
    mime_type: str
    analysis_status: AnalysisStatus
    analysis_results: Optional[dict] = None
    analysis_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
