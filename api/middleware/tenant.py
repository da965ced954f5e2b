import uuid

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from api.middleware.auth import get_current_user


async def get_company_id(
    current_user: dict = Depends(get_current_user),
) -> uuid.UUID:
    """FastAPI dependency: the caller's company, bound into the log context.

    Every query in a request filters by this id.
    """
    try:
        company_id = uuid.UUID(str(current_user["company_id"]))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": {
                    "code": "AUTH_TOKEN_INVALID",
                    "message": "Token carries an invalid company id",
                }
            },
        )
    structlog.contextvars.bind_contextvars(company_id=str(company_id))
    return company_id


def _not_found(label: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": {"code": "NOT_FOUND", "message": f"{label} not found"}},
    )


async def get_owned_or_404(db: AsyncSession, model, entity_id, company_id: uuid.UUID, label: str):
    """Load a row by id, treating malformed ids and other companies' rows as missing."""
    try:
        key = entity_id if isinstance(entity_id, uuid.UUID) else uuid.UUID(str(entity_id))
    except ValueError:
        raise _not_found(label)
    result = await db.execute(
        select(model).where(model.id == key, model.company_id == company_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise _not_found(label)
    return row
