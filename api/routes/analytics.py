"""
Spend analytics API: /api/v1/analytics

  - phase-summary: spend and purchase count per phase name
  - item-breakdown: top items by spend, with total quantity
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.database import get_db
from api.middleware.authorization import require_permission
from api.middleware.tenant import get_company_id
from api.models.item import Item
from api.models.phase import Phase
from api.models.purchase import Purchase
from api.schemas.common import MAX_PAGE_LIMIT
from api.schemas.analytics import (
    ItemBreakdownResponse,
    ItemBreakdownRow,
    PhaseSummaryResponse,
    PhaseSummaryRow,
)

router = APIRouter()


@router.get("/phase-summary", response_model=PhaseSummaryResponse)
async def get_phase_summary(
    project_id: Optional[uuid.UUID] = Query(None),
    _auth: None = Depends(require_permission("REPORT_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    """Purchases rolled up by phase name; phases sharing a name across projects are merged."""
    q = (
        select(
            Phase.name.label("phase_name"),
            func.coalesce(func.sum(Purchase.total_cost), 0).label("total_cost"),
            func.count(Purchase.id).label("purchase_count"),
        )
        .select_from(Purchase)
        .join(Phase, Purchase.phase_id == Phase.id)
        .where(Purchase.company_id == company_id)
        .group_by(Phase.name)
        .order_by(Phase.name)
    )
    if project_id:
        q = q.where(Purchase.project_id == project_id)

    rows = (await db.execute(q)).all()
    return PhaseSummaryResponse(
        data=[
            PhaseSummaryRow(
                phase_name=r.phase_name,
                total_cost=float(r.total_cost or 0),
                purchase_count=int(r.purchase_count),
            )
            for r in rows
        ]
    )


@router.get("/item-breakdown", response_model=ItemBreakdownResponse)
async def get_item_breakdown(
    project_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(10, ge=1, le=MAX_PAGE_LIMIT),
    _auth: None = Depends(require_permission("REPORT_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    total_cost = func.coalesce(func.sum(Purchase.total_cost), 0)
    q = (
        select(
            Item.name.label("item_name"),
            total_cost.label("total_cost"),
            func.coalesce(func.sum(Purchase.quantity), 0).label("total_quantity"),
            func.count(Purchase.id).label("purchase_count"),
        )
        .select_from(Purchase)
        .join(Item, Purchase.item_id == Item.id)
        .where(Purchase.company_id == company_id)
        .group_by(Item.name)
        .order_by(total_cost.desc())
        .limit(limit)
    )
    if project_id:
        q = q.where(Purchase.project_id == project_id)

    rows = (await db.execute(q)).all()
    return ItemBreakdownResponse(
        data=[
            ItemBreakdownRow(
                item_name=r.item_name,
                total_cost=float(r.total_cost or 0),
                total_quantity=float(r.total_quantity or 0),
                purchase_count=int(r.purchase_count),
            )
            for r in rows
        ]
    )
