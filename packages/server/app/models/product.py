"""Client product catalogue entry."""

from decimal import Decimal
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Product(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "products"

    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True, ondelete="CASCADE")
    name: str = Field(nullable=False)
    description: Optional[str] = None
    image_url: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, sa_type=sa.Numeric(10, 2))
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
