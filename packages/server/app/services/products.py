"""
Product service: catalogue entries attached to a project.
"""

from __future__ import annotations

import uuid

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.product import Product
from cohete_shared.schemas.products import ProductCreate, ProductUpdate


async def get_product_or_404(session: AsyncSession, product_id: uuid.UUID) -> Product:
    product = await session.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


async def list_products(session: AsyncSession, project_id: uuid.UUID) -> list[Product]:
    result = await session.execute(
        select(Product).where(Product.project_id == project_id).order_by(Product.name)
    )
    return list(result.scalars().all())


async def create_product(
    session: AsyncSession, project_id: uuid.UUID, req: ProductCreate, auth: AuthenticatedUser
) -> Product:
    product = Product(project_id=project_id, created_by=auth.user_id, **req.model_dump())
    session.add(product)
    await session.flush()
    return product


async def update_product(session: AsyncSession, product: Product, req: ProductUpdate) -> Product:
    for key, value in req.model_dump(exclude_unset=True).items():
        setattr(product, key, value)
    session.add(product)
    await session.flush()
    return product


async def delete_product(session: AsyncSession, product: Product) -> None:
    await session.delete(product)
    await session.flush()
