import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from api.database import get_db
from api.middleware.auth import get_current_user
from api.middleware.authorization import require_permission
from api.middleware.tenant import get_company_id, get_owned_or_404
from api.models.project import Project
from api.schemas.common import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    PaginatedResponse,
    build_pagination,
    page_offset,
)
from api.schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate

logger = structlog.get_logger()
router = APIRouter()


def _to_response(p: Project) -> ProjectResponse:
    return ProjectResponse(
        id=str(p.id),
        company_id=str(p.company_id),
        name=p.name,
        client=p.client,
        location=p.location,
        budget=float(p.budget or 0),
        status=p.status,
        start_date=p.start_date.isoformat(),
        end_date=p.end_date.isoformat() if p.end_date else None,
        created_by=str(p.created_by) if p.created_by else None,
        created_at=p.created_at.isoformat() if p.created_at else "",
        updated_at=p.updated_at.isoformat() if p.updated_at else "",
    )


@router.get("", response_model=PaginatedResponse[ProjectResponse])
async def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    project_status: str = Query(None, alias="status"),
    _auth: None = Depends(require_permission("PROJECT_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    q = select(Project).where(Project.company_id == company_id)
    count_q = select(func.count(Project.id)).where(Project.company_id == company_id)
    if project_status:
        q = q.where(Project.status == project_status)
        count_q = count_q.where(Project.status == project_status)

    total = (await db.execute(count_q)).scalar() or 0
    result = await db.execute(
        q.order_by(Project.created_at.desc()).offset(page_offset(page, limit)).limit(limit)
    )
    items = [_to_response(p) for p in result.scalars().all()]
    return PaginatedResponse(data=items, pagination=build_pagination(page, limit, total))


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    _auth: None = Depends(require_permission("PROJECT_VIEW")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    project = await get_owned_or_404(db, Project, project_id, company_id, "Project")
    return _to_response(project)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    current_user: dict = Depends(get_current_user),
    _auth: None = Depends(require_permission("PROJECT_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    project = Project(
        company_id=company_id,
        created_by=uuid.UUID(current_user["user_id"]),
        **body.model_dump(),
    )
    db.add(project)
    await db.flush()
    await db.refresh(project)
    logger.info("project_created", project_id=str(project.id))
    return _to_response(project)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    _auth: None = Depends(require_permission("PROJECT_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    project = await get_owned_or_404(db, Project, project_id, company_id, "Project")
    for field, val in body.model_dump(exclude_unset=True).items():
        setattr(project, field, val)
    await db.flush()
    await db.refresh(project)
    return _to_response(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    _auth: None = Depends(require_permission("PROJECT_MANAGE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    project = await get_owned_or_404(db, Project, project_id, company_id, "Project")
    await db.delete(project)
    await db.flush()
    logger.info("project_deleted", project_id=project_id)
