"""
Read-only cost queries behind the chat and analytics endpoints.

Every function is scoped by company_id. Spend is never stored: it is always
the live SUM of Purchase.total_cost over the matching rows. Name lookups are
case-insensitive, prefer an exact match over a substring match, and treat
"nothing found" as None / [] rather than an error.
"""

import calendar
import uuid
from datetime import datetime, time
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from api.models.item import Item
from api.models.phase import Phase
from api.models.project import Project
from api.models.purchase import Purchase
from api.models.vendor import Vendor

logger = structlog.get_logger()

IdLike = Union[str, uuid.UUID]

SUMMARY_LIST_LIMIT = 10


def _as_uuid(value: IdLike) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value or 0))


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(term: str) -> str:
    return f"%{_escape_like(term)}%"


def percent_used(spent, budget) -> str:
    """spent / budget as a percentage with one decimal; "0.0" for an empty budget."""
    if not budget:
        return "0.0"
    return f"{float(spent) / float(budget) * 100:.1f}"


def current_month_window(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    now = now or datetime.utcnow()
    last_day = calendar.monthrange(now.year, now.month)[1]
    start = datetime(now.year, now.month, 1)
    end = datetime.combine(now.replace(day=last_day).date(), time.max)
    return start, end


async def _resolve_by_name(
    db: AsyncSession,
    model,
    company_id: uuid.UUID,
    name: str,
    *extra_filters,
):
    """Case-insensitive lookup: exact name first, then substring."""
    base = select(model).where(model.company_id == company_id, *extra_filters)
    result = await db.execute(
        base.where(model.name.ilike(_escape_like(name), escape="\\"))
        .order_by(model.created_at)
        .limit(1)
    )
    found = result.scalars().first()
    if found:
        return found
    result = await db.execute(
        base.where(model.name.ilike(_contains(name), escape="\\"))
        .order_by(model.created_at)
        .limit(1)
    )
    return result.scalars().first()


async def _purchase_totals(db: AsyncSession, company_id: uuid.UUID, *filters) -> tuple[Decimal, int]:
    result = await db.execute(
        select(
            func.coalesce(func.sum(Purchase.total_cost), 0).label("spent"),
            func.count(Purchase.id).label("purchase_count"),
        ).where(Purchase.company_id == company_id, *filters)
    )
    row = result.one()
    return _to_decimal(row.spent), int(row.purchase_count or 0)


async def list_entity_names(
    db: AsyncSession, model, company_id: IdLike, limit: int = 5
) -> list[str]:
    """Up to `limit` known names of a resource, oldest first."""
    result = await db.execute(
        select(model.name)
        .where(model.company_id == _as_uuid(company_id))
        .order_by(model.created_at)
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_recent_item_names(db: AsyncSession, company_id: IdLike, limit: int = 3) -> list[str]:
    """Distinct names of the most recently purchased items."""
    result = await db.execute(
        select(Item.name)
        .select_from(Purchase)
        .join(Item, Purchase.item_id == Item.id)
        .where(Purchase.company_id == _as_uuid(company_id))
        .order_by(Purchase.purchase_date.desc())
        .limit(limit * 4)
    )
    names: list[str] = []
    for name in result.scalars().all():
        if name and name not in names:
            names.append(name)
    return names[:limit]


# ---------------------------------------------------------------------------
# Phase spending
# ---------------------------------------------------------------------------


async def get_phase_spending(
    db: AsyncSession,
    company_id: IdLike,
    phase_name: Optional[str],
    project_id: Optional[IdLike] = None,
) -> Optional[dict]:
    if not phase_name:
        return None

    company_id = _as_uuid(company_id)
    filters = [Phase.project_id == _as_uuid(project_id)] if project_id else []
    phase = await _resolve_by_name(db, Phase, company_id, phase_name, *filters)
    if not phase:
        logger.info("phase_not_resolved", phase_name=phase_name)
        return None

    spent, purchase_count = await _purchase_totals(
        db, company_id, Purchase.phase_id == phase.id
    )
    budget = phase.budget or 0
    return {
        "phase_name": phase.name,
        "budget": budget,
        "spent": spent,
        "remaining": budget - spent,
        "purchase_count": purchase_count,
    }


# ---------------------------------------------------------------------------
# Item purchases
# ---------------------------------------------------------------------------


async def get_item_purchases(
    db: AsyncSession,
    company_id: IdLike,
    item_name: Optional[str],
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> list[dict]:
    """Purchases whose item name contains item_name (case-insensitive), newest first.

    An empty item_name matches every purchase in the window.
    """
    q = (
        select(Purchase, Item.name, Item.unit, Vendor.name, Project.name)
        .join(Item, Purchase.item_id == Item.id)
        .outerjoin(Vendor, Purchase.vendor_id == Vendor.id)
        .outerjoin(Project, Purchase.project_id == Project.id)
        .where(Purchase.company_id == _as_uuid(company_id))
    )
    if item_name:
        q = q.where(Item.name.ilike(_contains(item_name), escape="\\"))
    if start_date:
        q = q.where(Purchase.purchase_date >= start_date)
    if end_date:
        q = q.where(Purchase.purchase_date <= end_date)

    result = await db.execute(q.order_by(Purchase.purchase_date.desc()))
    return [
        {
            "item": item or "Unknown",
            "quantity": p.quantity,
            "unit": unit or "",
            "price_per_unit": p.price_per_unit,
            "total_cost": p.total_cost or 0,
            "vendor": vendor or "Unknown",
            "project": project or "Unknown",
            "date": p.purchase_date,
        }
        for p, item, unit, vendor, project in result.all()
    ]


async def get_current_month_purchases(
    db: AsyncSession,
    company_id: IdLike,
    item_name: Optional[str] = None,
) -> list[dict]:
    start, end = current_month_window()
    return await get_item_purchases(db, company_id, item_name or "", start, end)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


async def _project_stats(db: AsyncSession, project: Project) -> dict:
    spent, purchase_count = await _purchase_totals(
        db, project.company_id, Purchase.project_id == project.id
    )
    phase_count = (
        await db.execute(
            select(func.count(Phase.id)).where(
                Phase.company_id == project.company_id,
                Phase.project_id == project.id,
            )
        )
    ).scalar() or 0
    budget = project.budget or 0
    return {
        "name": project.name or "Unknown Project",
        "budget": budget,
        "spent": spent,
        "remaining": budget - spent,
        "percent_used": percent_used(spent, budget),
        "phase_count": int(phase_count),
        "purchase_count": purchase_count,
        "status": project.status or "ongoing",
    }


async def compare_projects(
    db: AsyncSession,
    company_id: IdLike,
    project1_name: str,
    project2_name: str,
) -> Optional[dict]:
    company_id = _as_uuid(company_id)
    project1 = await _resolve_by_name(db, Project, company_id, project1_name)
    project2 = await _resolve_by_name(db, Project, company_id, project2_name)
    if not project1 or not project2:
        logger.info(
            "compare_projects_not_resolved",
            project1=project1_name,
            project2=project2_name,
            found1=bool(project1),
            found2=bool(project2),
        )
        return None

    stats1 = await _project_stats(db, project1)
    stats2 = await _project_stats(db, project2)
    return {
        "project1": stats1,
        "project2": stats2,
        "comparison": {
            "budget_difference": stats1["budget"] - stats2["budget"],
            "spent_difference": stats1["spent"] - stats2["spent"],
            "efficiency_difference": round(
                float(stats1["percent_used"]) - float(stats2["percent_used"]), 1
            ),
        },
    }


async def get_project_summary(
    db: AsyncSession,
    company_id: IdLike,
    project_name: Optional[str] = None,
) -> Union[dict, list[dict], None]:
    """One project's summary when a name is given (None if unknown),
    otherwise a list of up to SUMMARY_LIST_LIMIT summaries."""
    company_id = _as_uuid(company_id)
    if project_name:
        project = await _resolve_by_name(db, Project, company_id, project_name)
        if not project:
            logger.info("project_not_resolved", project_name=project_name)
            return None
        return await _project_stats(db, project)

    result = await db.execute(
        select(Project)
        .where(Project.company_id == company_id)
        .order_by(Project.created_at)
        .limit(SUMMARY_LIST_LIMIT)
    )
    return [await _project_stats(db, p) for p in result.scalars().all()]


# ---------------------------------------------------------------------------
# Vendors
# ---------------------------------------------------------------------------


async def get_vendor_spending(
    db: AsyncSession,
    company_id: IdLike,
    vendor_name: Optional[str] = None,
    project_id: Optional[IdLike] = None,
) -> list[dict]:
    """Spend grouped by vendor name, highest first. Purchases without a vendor are ignored."""
    company_id = _as_uuid(company_id)
    filters = [Purchase.company_id == company_id]
    if project_id:
        filters.append(Purchase.project_id == _as_uuid(project_id))
    if vendor_name:
        filters.append(Vendor.name.ilike(_contains(vendor_name), escape="\\"))

    totals = await db.execute(
        select(
            Vendor.name.label("name"),
            func.coalesce(func.sum(Purchase.total_cost), 0).label("total_spent"),
            func.count(Purchase.id).label("purchase_count"),
        )
        .select_from(Purchase)
        .join(Vendor, Purchase.vendor_id == Vendor.id)
        .where(*filters)
        .group_by(Vendor.name)
        .order_by(func.sum(Purchase.total_cost).desc())
    )
    vendors = {
        r.name: {
            "name": r.name,
            "total_spent": _to_decimal(r.total_spent),
            "purchase_count": int(r.purchase_count),
            "items": [],
        }
        for r in totals.all()
    }
    if not vendors:
        return []

    items = await db.execute(
        select(Vendor.name, Item.name)
        .select_from(Purchase)
        .join(Vendor, Purchase.vendor_id == Vendor.id)
        .join(Item, Purchase.item_id == Item.id)
        .where(*filters)
        .order_by(Purchase.purchase_date)
    )
    for vendor, item in items.all():
        names = vendors[vendor]["items"]
        if item not in names:
            names.append(item)

    return sorted(vendors.values(), key=lambda v: v["total_spent"], reverse=True)
