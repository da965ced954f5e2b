import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from api.database import get_db
from api.middleware.authorization import require_permission
from api.middleware.tenant import get_company_id, get_owned_or_404
from api.models.vendor import Vendor
from api.schemas.common import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    PaginatedResponse,
    build_pagination,
    page_offset,
)
from api.schemas.vendor import VendorCreate, VendorResponse, VendorUpdate

logger = structlog.get_logger()
router = APIRouter()


def _to_response(v: Vendor) -> VendorResponse:
    return VendorResponse(
        id=str(v.id),
        company_id=str(v.company_id),
        name=v.name,
        contact_person=v.contact_person,
        email=v.email,
        phone=v.phone,
        address=v.address,
        rating=float(v.rating) if v.rating is not None else None,
        created_at=v.created_at.isoformat() if v.created_at else "",
        updated_at=v.updated_at.isoformat() if v.updated_at else "",
    )


@router.get("", response_model=PaginatedResponse[VendorResponse])
async def list_vendors(
    page: int = Query(1, ge=1, le=1000),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    search: str = Query(None),
    _auth: None = Depends(require_permission("VENDOR_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    q = select(Vendor).where(Vendor.company_id == company_id)
    count_q = select(func.count(Vendor.id)).where(Vendor.company_id == company_id)
    if search:
        pattern = f"%{search}%"
        match = or_(Vendor.name.ilike(pattern), Vendor.contact_person.ilike(pattern))
        q = q.where(match)
        count_q = count_q.where(match)

    total = (await db.execute(count_q)).scalar() or 0
    result = await db.execute(
        q.order_by(Vendor.name).offset(page_offset(page, limit)).limit(limit)
    )
    items = [_to_response(v) for v in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.get("/{vendor_id}", response_model=VendorResponse)
async def get_vendor(
    vendor_id: str,
    _auth: None = Depends(require_permission("VENDOR_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    vendor = await get_owned_or_404(db, Vendor, vendor_id, company_id, "Vendor")
    return _to_response(vendor)


@router.post("", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
async def create_vendor(
    body: VendorCreate,
    _auth: None = Depends(require_permission("VENDOR_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    vendor = Vendor(company_id=company_id, **body.model_dump())
    db.add(vendor)
    await db.flush()
    await db.refresh(vendor)
    logger.info("vendor_created", vendor_id=str(vendor.id))
    return _to_response(vendor)


@router.patch("/{vendor_id}", response_model=VendorResponse)
async def update_vendor(
    vendor_id: str,
    body: VendorUpdate,
    _auth: None = Depends(require_permission("VENDOR_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    vendor = await get_owned_or_404(db, Vendor, vendor_id, company_id, "Vendor")
    for field, val in body.model_dump(exclude_unset=True).items():
        setattr(vendor, field, val)
    await db.flush()
    await db.refresh(vendor)
    return _to_response(vendor)


@router.delete("/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vendor(
    vendor_id: str,
    _auth: None = Depends(require_permission("VENDOR_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    vendor = await get_owned_or_404(db, Vendor, vendor_id, company_id, "Vendor")
    await db.delete(vendor)
    await db.flush()
