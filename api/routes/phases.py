import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from api.database import get_db
from api.middleware.authorization import require_permission
from api.middleware.tenant import get_company_id, get_owned_or_404
from api.models.phase import Phase
from api.models.project import Project
from api.schemas.common import (
    MAX_PAGE_LIMIT,
    PaginatedResponse,
    build_pagination,
    page_offset,
)
from api.schemas.phase import PhaseCreate, PhaseResponse, PhaseUpdate

logger = structlog.get_logger()
router = APIRouter()


def _to_response(p: Phase) -> PhaseResponse:
    return PhaseResponse(
        id=str(p.id),
        company_id=str(p.company_id),
        project_id=str(p.project_id),
        name=p.name,
        budget=float(p.budget) if p.budget is not None else None,
        description=p.description,
        created_at=p.created_at.isoformat() if p.created_at else "",
        updated_at=p.updated_at.isoformat() if p.updated_at else "",
    )


@router.get("", response_model=PaginatedResponse[PhaseResponse])
async def list_phases(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=MAX_PAGE_LIMIT),
    project_id: Optional[uuid.UUID] = Query(None),
    _auth: None = Depends(require_permission("PHASE_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    filters = [Phase.company_id == company_id]
    if project_id:
        filters.append(Phase.project_id == project_id)

    total = (await db.execute(select(func.count(Phase.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Phase).where(*filters)
        .order_by(Phase.created_at).offset(page_offset(page, limit)).limit(limit)
    )
    items = [_to_response(p) for p in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.get("/{phase_id}", response_model=PhaseResponse)
async def get_phase(
    phase_id: str,
    _auth: None = Depends(require_permission("PHASE_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    return _to_response(await get_owned_or_404(db, Phase, phase_id, company_id, "Phase"))


@router.post("", response_model=PhaseResponse, status_code=status.HTTP_201_CREATED)
async def create_phase(
    body: PhaseCreate,
    _auth: None = Depends(require_permission("PHASE_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    project = await get_owned_or_404(db, Project, body.project_id, company_id, "Project")
    phase = Phase(
        company_id=company_id,
        project_id=project.id,
        name=body.name,
        budget=body.budget,
        description=body.description,
    )
    db.add(phase)
    await db.flush()
    await db.refresh(phase)
    logger.info("phase_created", phase_id=str(phase.id), project_id=str(project.id))
    return _to_response(phase)


@router.patch("/{phase_id}", response_model=PhaseResponse)
async def update_phase(
    phase_id: str,
    body: PhaseUpdate,
    _auth: None = Depends(require_permission("PHASE_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    phase = await get_owned_or_404(db, Phase, phase_id, company_id, "Phase")
    for field, val in body.model_dump(exclude_unset=True).items():
        setattr(phase, field, val)
    await db.flush()
    await db.refresh(phase)
    return _to_response(phase)


@router.delete("/{phase_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_phase(
    phase_id: str,
    _auth: None = Depends(require_permission("PHASE_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    phase = await get_owned_or_404(db, Phase, phase_id, company_id, "Phase")
    await db.delete(phase)
    await db.flush()
