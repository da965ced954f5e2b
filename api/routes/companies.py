import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from api.database import get_db
from api.middleware.authorization import require_permission
from api.middleware.tenant import get_company_id
from api.models.company import Company
from api.schemas.company import CompanySettingsResponse, CompanySettingsUpdate
from api.services.response_templates import currency_symbol

logger = structlog.get_logger()
router = APIRouter()


def _to_response(c: Company) -> CompanySettingsResponse:
    return CompanySettingsResponse(
        id=str(c.id),
        name=c.name,
        default_currency=c.currency or "USD",
        currency_symbol=currency_symbol(c.currency),
    )


async def _get_company(db: AsyncSession, company_id: uuid.UUID) -> Company:
    company = await db.get(Company, company_id)
    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": {"code": "NOT_FOUND", "message": "Company not found"}},
        )
    return company


@router.get("/settings", response_model=CompanySettingsResponse)
async def get_company_settings(
    _auth: None = Depends(require_permission("COMPANY_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await _get_company(db, company_id))


@router.patch("/settings", response_model=CompanySettingsResponse)
async def update_company_settings(
    body: CompanySettingsUpdate,
    _auth: None = Depends(require_permission("COMPANY_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    company = await _get_company(db, company_id)
    if body.default_currency:
        company.currency = body.default_currency
        logger.info("company_currency_updated", currency=company.currency)

    await db.flush()
    await db.refresh(company)
    return _to_response(company)
