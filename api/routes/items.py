import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.database import get_db
from api.middleware.authorization import require_permission
from api.middleware.tenant import get_company_id, get_owned_or_404
from api.models.item import Item
from api.models.phase import Category
from api.models.vendor import Vendor
from api.schemas.common import (
    MAX_PAGE_LIMIT,
    PaginatedResponse,
    build_pagination,
    page_offset,
)
from api.schemas.item import ItemCreate, ItemResponse, ItemUpdate

router = APIRouter()


def _to_response(i: Item) -> ItemResponse:
    return ItemResponse(
        id=str(i.id), company_id=str(i.company_id), category_id=str(i.category_id),
        name=i.name, unit=i.unit, rate=float(i.rate or 0),
        default_vendor_id=str(i.default_vendor_id) if i.default_vendor_id else None,
        created_at=i.created_at.isoformat() if i.created_at else "",
        updated_at=i.updated_at.isoformat() if i.updated_at else "",
    )


@router.get("", response_model=PaginatedResponse[ItemResponse])
async def list_items(
    page: int = Query(1, ge=1), limit: int = Query(50, ge=1, le=MAX_PAGE_LIMIT),
    category_id: Optional[uuid.UUID] = Query(None),
    _auth: None = Depends(require_permission("ITEM_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    filters = [Item.company_id == company_id]
    if category_id:
        filters.append(Item.category_id == category_id)

    total = (await db.execute(select(func.count(Item.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Item).where(*filters)
        .order_by(Item.name).offset(page_offset(page, limit)).limit(limit)
    )
    items = [_to_response(i) for i in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: str,
    _auth: None = Depends(require_permission("ITEM_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await get_owned_or_404(db, Item, item_id, company_id, "Item"))


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    body: ItemCreate,
    _auth: None = Depends(require_permission("ITEM_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    category = await get_owned_or_404(db, Category, body.category_id, company_id, "Category")
    vendor_id = None
    if body.default_vendor_id:
        vendor = await get_owned_or_404(db, Vendor, body.default_vendor_id, company_id, "Vendor")
        vendor_id = vendor.id

    item = Item(
        company_id=company_id, category_id=category.id,
        name=body.name, unit=body.unit, rate=body.rate,
        default_vendor_id=vendor_id,
    )
    db.add(item)
    await db.flush()
    await db.refresh(item)
    return _to_response(item)


@router.patch("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str, body: ItemUpdate,
    _auth: None = Depends(require_permission("ITEM_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    item = await get_owned_or_404(db, Item, item_id, company_id, "Item")
    for field, val in body.model_dump(exclude_unset=True).items():
        if field == "default_vendor_id" and val is not None:
            vendor = await get_owned_or_404(db, Vendor, val, company_id, "Vendor")
            val = vendor.id
        setattr(item, field, val)
    await db.flush()
    await db.refresh(item)
    return _to_response(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    _auth: None = Depends(require_permission("ITEM_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    item = await get_owned_or_404(db, Item, item_id, company_id, "Item")
    await db.delete(item)
    await db.flush()
