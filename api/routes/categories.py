import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.database import get_db
from api.middleware.authorization import require_permission
from api.middleware.tenant import get_company_id, get_owned_or_404
from api.models.phase import Category, Phase
from api.schemas.common import (
    MAX_PAGE_LIMIT,
    PaginatedResponse,
    build_pagination,
    page_offset,
)
from api.schemas.phase import CategoryCreate, CategoryResponse, CategoryUpdate

router = APIRouter()


def _to_response(c: Category) -> CategoryResponse:
    return CategoryResponse(
        id=str(c.id), company_id=str(c.company_id), phase_id=str(c.phase_id),
        name=c.name, description=c.description,
        created_at=c.created_at.isoformat() if c.created_at else "",
        updated_at=c.updated_at.isoformat() if c.updated_at else "",
    )


@router.get("", response_model=PaginatedResponse[CategoryResponse])
async def list_categories(
    page: int = Query(1, ge=1), limit: int = Query(50, ge=1, le=MAX_PAGE_LIMIT),
    phase_id: Optional[uuid.UUID] = Query(None),
    _auth: None = Depends(require_permission("CATEGORY_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    filters = [Category.company_id == company_id]
    if phase_id:
        filters.append(Category.phase_id == phase_id)

    total = (await db.execute(select(func.count(Category.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Category).where(*filters)
        .order_by(Category.name).offset(page_offset(page, limit)).limit(limit)
    )
    items = [_to_response(c) for c in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: str,
    _auth: None = Depends(require_permission("CATEGORY_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await get_owned_or_404(db, Category, category_id, company_id, "Category"))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    _auth: None = Depends(require_permission("CATEGORY_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    phase = await get_owned_or_404(db, Phase, body.phase_id, company_id, "Phase")
    category = Category(
        company_id=company_id, phase_id=phase.id,
        name=body.name, description=body.description,
    )
    db.add(category)
    await db.flush()
    await db.refresh(category)
    return _to_response(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str, body: CategoryUpdate,
    _auth: None = Depends(require_permission("CATEGORY_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    category = await get_owned_or_404(db, Category, category_id, company_id, "Category")
    for field, val in body.model_dump(exclude_unset=True).items():
        setattr(category, field, val)
    await db.flush()
    await db.refresh(category)
    return _to_response(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    _auth: None = Depends(require_permission("CATEGORY_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    category = await get_owned_or_404(db, Category, category_id, company_id, "Category")
    await db.delete(category)
    await db.flush()
