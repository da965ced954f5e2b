import uuid
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from api.database import get_db
from api.middleware.auth import get_current_user
from api.middleware.authorization import require_permission
from api.middleware.tenant import get_company_id, get_owned_or_404
from api.models.item import Item
from api.models.phase import Category, Phase
from api.models.project import Project
from api.models.purchase import Purchase, compute_total_cost
from api.models.vendor import Vendor
from api.schemas.common import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    PaginatedResponse,
    build_pagination,
    page_offset,
)
from api.schemas.purchase import PurchaseCreate, PurchaseResponse, PurchaseUpdate

logger = structlog.get_logger()
router = APIRouter()


def _to_response(p: Purchase) -> PurchaseResponse:
    return PurchaseResponse(
        id=str(p.id),
        company_id=str(p.company_id),
        item_id=str(p.item_id),
        category_id=str(p.category_id),
        phase_id=str(p.phase_id),
        project_id=str(p.project_id),
        vendor_id=str(p.vendor_id) if p.vendor_id else None,
        quantity=float(p.quantity),
        price_per_unit=float(p.price_per_unit),
        total_cost=float(p.total_cost or 0),
        purchase_date=p.purchase_date.isoformat() if p.purchase_date else "",
        invoice_url=p.invoice_url,
        created_by=str(p.created_by) if p.created_by else None,
        created_at=p.created_at.isoformat() if p.created_at else "",
    )


@router.get("", response_model=PaginatedResponse[PurchaseResponse])
async def list_purchases(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    project_id: Optional[uuid.UUID] = Query(None),
    phase_id: Optional[uuid.UUID] = Query(None),
    category_id: Optional[uuid.UUID] = Query(None),
    item_id: Optional[uuid.UUID] = Query(None),
    vendor_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    _auth: None = Depends(require_permission("EXPENSE_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    filters = [Purchase.company_id == company_id]
    for column, value in (
        (Purchase.project_id, project_id),
        (Purchase.phase_id, phase_id),
        (Purchase.category_id, category_id),
        (Purchase.item_id, item_id),
        (Purchase.vendor_id, vendor_id),
    ):
        if value:
            filters.append(column == value)
    if start_date:
        filters.append(Purchase.purchase_date >= datetime.combine(start_date, time.min))
    if end_date:
        filters.append(Purchase.purchase_date <= datetime.combine(end_date, time.max))

    total = (await db.execute(select(func.count(Purchase.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Purchase).where(*filters)
        .order_by(Purchase.purchase_date.desc()).offset(page_offset(page, limit)).limit(limit)
    )
    items = [_to_response(p) for p in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase(
    purchase_id: str,
    _auth: None = Depends(require_permission("EXPENSE_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await get_owned_or_404(db, Purchase, purchase_id, company_id, "Purchase"))


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
async def create_purchase(
    body: PurchaseCreate,
    current_user: dict = Depends(get_current_user),
    _auth: None = Depends(require_permission("EXPENSE_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    item = await get_owned_or_404(db, Item, body.item_id, company_id, "Item")
    category = await get_owned_or_404(db, Category, body.category_id, company_id, "Category")
    phase = await get_owned_or_404(db, Phase, body.phase_id, company_id, "Phase")
    project = await get_owned_or_404(db, Project, body.project_id, company_id, "Project")
    vendor_id = None
    if body.vendor_id:
        vendor_id = (await get_owned_or_404(db, Vendor, body.vendor_id, company_id, "Vendor")).id

    purchase = Purchase(
        company_id=company_id,
        item_id=item.id,
        category_id=category.id,
        phase_id=phase.id,
        project_id=project.id,
        vendor_id=vendor_id,
        quantity=body.quantity,
        price_per_unit=body.price_per_unit,
        total_cost=body.total_cost,
        purchase_date=body.purchase_date or datetime.utcnow(),
        invoice_url=body.invoice_url,
        created_by=uuid.UUID(current_user["user_id"]),
    )
    db.add(purchase)
    await db.flush()
    await db.refresh(purchase)
    logger.info(
        "purchase_created",
        purchase_id=str(purchase.id),
        project_id=str(project.id),
        total_cost=str(purchase.total_cost),
    )
    return _to_response(purchase)


@router.patch("/{purchase_id}", response_model=PurchaseResponse)
async def update_purchase(
    purchase_id: str,
    body: PurchaseUpdate,
    _auth: None = Depends(require_permission("EXPENSE_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    purchase = await get_owned_or_404(db, Purchase, purchase_id, company_id, "Purchase")
    changes = body.model_dump(exclude_unset=True)
    if changes.get("vendor_id"):
        changes["vendor_id"] = (
            await get_owned_or_404(db, Vendor, changes["vendor_id"], company_id, "Vendor")
        ).id
    for field, val in changes.items():
        setattr(purchase, field, val)

    # A new quantity or price invalidates the stored total unless one was sent.
    if ("quantity" in changes or "price_per_unit" in changes) and not changes.get("total_cost"):
        purchase.total_cost = compute_total_cost(purchase.quantity, purchase.price_per_unit)

    await db.flush()
    await db.refresh(purchase)
    return _to_response(purchase)


@router.delete("/{purchase_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_purchase(
    purchase_id: str,
    _auth: None = Depends(require_permission("EXPENSE_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    purchase = await get_owned_or_404(db, Purchase, purchase_id, company_id, "Purchase")
    await db.delete(purchase)
    await db.flush()
