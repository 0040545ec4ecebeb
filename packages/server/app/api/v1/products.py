"""
Product catalogue endpoints.

GET    /api/v1/projects/{projectId}/products
POST   /api/v1/projects/{projectId}/products
GET    /api/v1/products/{productId}
PATCH  /api/v1/products/{productId}
DELETE /api/v1/products/{productId}
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_accessible_project, require_user
from app.core.database import get_session
from app.models.product import Product
from app.services import products as product_service
from cohete_shared.schemas.products import ProductCreate, ProductRead, ProductUpdate

router = APIRouter()


async def _get_product(
    session: AsyncSession, product_id: uuid.UUID, auth: AuthenticatedUser
) -> Product:
    product = await product_service.get_product_or_404(session, product_id)
    await get_accessible_project(product.project_id, auth, session)
    return product


@router.get("/projects/{project_id}/products", response_model=List[ProductRead])
async def list_products(
    project_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await product_service.list_products(session, project.id)


@router.post("/projects/{project_id}/products", response_model=ProductRead, status_code=201)
async def create_product(
    project_id: uuid.UUID,
    body: ProductCreate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    project = await get_accessible_project(project_id, auth, session)
    return await product_service.create_product(session, project.id, body, auth)


@router.get("/products/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await _get_product(session, product_id, auth)


@router.patch("/products/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: uuid.UUID,
    body: ProductUpdate,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    product = await _get_product(session, product_id, auth)
    return await product_service.update_product(session, product, body)


@router.delete("/products/{product_id}", status_code=204)
async def delete_product(
    product_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    product = await _get_product(session, product_id, auth)
    await product_service.delete_product(session, product)
